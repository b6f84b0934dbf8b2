# catalog_engine/core/storage_utils.py
import uuid

from supabase import Client


def generate_filename(ext: str) -> str:
    """
    Generate a random filename using UUID4.

    Args:
        ext: File extension without dot (e.g. "png", "jpg")

    Returns:
        A filename like "<uuid4>.png"
    """
    return f"{uuid.uuid4()}.{ext}"


def extract_path_from_public_url(url: str, bucket: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/catalog-media/catalog/a.png
        -> 'catalog/a.png'
    """
    marker = f"/storage/v1/object/public/{bucket}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


class SupabaseMediaStore:
    """
    Object storage backed by a Supabase Storage bucket.

    This is the only place that talks to the media store. Every call is
    independent and can be retried; deleting a URL that does not exist
    (or does not belong to this bucket) is not an error.
    """

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    def upload(self, path: str, file_bytes: bytes, content_type: str) -> str:
        """
        Upload raw bytes to the bucket and return a public URL.

        Raises:
            Any exception raised by Supabase client if upload fails
            (including timeouts).
        """
        self.client.storage.from_(self.bucket).upload(
            path,
            file_bytes,
            {"content-type": content_type, "upsert": "false"},
        )
        return self.client.storage.from_(self.bucket).get_public_url(path)

    def delete(self, url: str) -> None:
        """
        Delete a file by its public URL.
        No-op if the URL does not belong to this bucket.
        """
        path = extract_path_from_public_url(url, self.bucket)
        if path:
            # Supabase Python client expects a list of paths.
            self.client.storage.from_(self.bucket).remove([path])
