# catalog_engine/routers/forms.py
from fastapi import HTTPException, Request, status
from starlette.datastructures import UploadFile

from catalog_engine.services.media_service import MediaUpload


async def read_multipart(
    request: Request,
) -> tuple[dict[str, str], dict[str, list[MediaUpload]]]:
    """
    Split a multipart form into its text fields and its files.

    Files are grouped by field name ("product_images", "variant_images[0]", ...)
    because the service decides which entity each group belongs to.
    """
    form = await request.form()

    fields: dict[str, str] = {}
    files: dict[str, list[MediaUpload]] = {}

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if not value.content_type:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Missing content-type for one of the uploaded files",
                )
            files.setdefault(key, []).append(
                MediaUpload(
                    filename=value.filename or key,
                    content_type=value.content_type,
                    data=await value.read(),
                )
            )
        else:
            fields[key] = value

    return fields, files
