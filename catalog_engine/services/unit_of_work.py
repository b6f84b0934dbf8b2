# catalog_engine/services/unit_of_work.py
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from catalog_engine.core.errors import CatalogError, InternalError
from catalog_engine.services.guards import (
    conflict_from_integrity_error,
    is_uniqueness_violation,
)
from catalog_engine.services.media_service import MediaManager, MediaUpload

logger = logging.getLogger(__name__)


class MutationUnit:
    """
    Bookkeeping for one atomic mutation attempt.

    - uploaded: URLs uploaded during this attempt. Purged if the unit aborts.
    - discarded: pre-existing URLs the mutation removes. Purged only after
      the unit commits, never for changes that did not persist.
    """

    def __init__(self, media: MediaManager | None):
        self.media = media
        self.uploaded: list[str] = []
        self.discarded: list[str] = []

    def upload(self, file: MediaUpload) -> str:
        url = self.media.upload(file)
        self.uploaded.append(url)
        return url

    def upload_images(self, files: list[MediaUpload] | None) -> list[dict]:
        """
        Upload every file and return image entries ready to store.
        """
        return [{"url": self.upload(f), "alt_text": None} for f in files or []]

    def discard_after_commit(self, url: str) -> None:
        if url not in self.discarded:
            self.discarded.append(url)


@contextmanager
def atomic_unit(
    session: Session,
    media: MediaManager | None,
    operation: str,
) -> Iterator[MutationUnit]:
    """
    Run a sequence of writes as one all-or-nothing unit.

    Usage:

        with atomic_unit(session, media, "create_variant") as unit:
            url = unit.upload(file)
            repo.add_variant(session, variant)

    On any failure the transaction is rolled back first; only then are the
    media uploaded during the attempt deleted (best-effort). A crash between
    the two leaves orphaned files, never a half-written catalog.

    Raises:
        CatalogError subclasses unchanged, IntegrityError on a unique index
        as ConflictError, anything else as InternalError.
    """
    unit = MutationUnit(media)
    try:
        yield unit
        session.commit()
    except Exception as exc:
        session.rollback()
        if media is not None:
            media.purge(unit.uploaded, reason=f"{operation} rolled back")

        if isinstance(exc, CatalogError):
            logger.info("%s failed: %s", operation, exc.message)
            raise
        if is_uniqueness_violation(exc):
            logger.info("%s hit a unique constraint: %s", operation, exc)
            raise conflict_from_integrity_error(exc) from exc
        if isinstance(exc, IntegrityError):
            logger.exception("%s violated a store constraint", operation)
            raise InternalError(f"Error during {operation}: store constraint violated.") from exc
        logger.exception("%s failed unexpectedly", operation)
        raise InternalError(f"Error during {operation}: {exc}") from exc

    if media is not None:
        media.purge(unit.discarded, reason=f"{operation} committed")
