from app.services.storage.base import BlobStorage


def create_blob_storage(settings) -> BlobStorage:
    """Create and return the configured blob storage backend.

    Reads STORAGE_BACKEND from settings. The S3 backend needs a bucket and
    credentials; a half-configured S3 setup is a startup error, not a silent
    fallback to local disk.
    """
    if settings.STORAGE_BACKEND == "local":
        from app.services.storage.local import LocalBlobStorage
        return LocalBlobStorage(
            base_dir=settings.STORAGE_LOCAL_DIR,
            public_base_url=settings.STORAGE_PUBLIC_BASE_URL,
        )

    if settings.STORAGE_BACKEND == "s3":
        missing = [
            name
            for name in ("S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY")
            if not getattr(settings, name)
        ]
        if missing:
            raise ValueError(f"S3 storage selected but not configured: {', '.join(missing)}")

        from app.services.storage.s3 import S3BlobStorage
        return S3BlobStorage(
            bucket=settings.S3_BUCKET,
            access_key=settings.S3_ACCESS_KEY_ID,
            secret_key=settings.S3_SECRET_ACCESS_KEY,
            region=settings.S3_REGION,
            endpoint_url=settings.S3_ENDPOINT_URL,
            public_base_url=settings.S3_PUBLIC_BASE_URL,
        )

    raise ValueError(f"Unsupported storage backend: {settings.STORAGE_BACKEND!r}")
