from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All values come from .env file or environment. Validated at startup;
    missing required values cause an immediate error with a clear message.
    Credentials have no defaults and must be injected by the deployment.
    """

    # Database
    DATABASE_URL: str  # async driver (asyncpg)
    DATABASE_URL_SYNC: str = ""  # sync driver (for Alembic CLI)
    DB_CREATE_TABLES: bool = False  # create tables at startup (local dev, tests); production uses Alembic

    # Blob storage
    STORAGE_BACKEND: Literal["local", "s3"] = "local"
    STORAGE_LOCAL_DIR: str = "/app/storage"
    STORAGE_PUBLIC_BASE_URL: str = "http://localhost:8000/storage"
    STORAGE_SERVE_LOCAL: bool = True  # mount STORAGE_LOCAL_DIR at /storage
    S3_BUCKET: str = ""
    S3_ENDPOINT_URL: str = ""
    S3_REGION: str = ""
    S3_ACCESS_KEY_ID: str = ""
    S3_SECRET_ACCESS_KEY: str = ""
    S3_PUBLIC_BASE_URL: str = ""

    # Contracts
    MAX_SIGNATURE_SIZE_MB: int = 5

    # App
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def max_signature_size_bytes(self) -> int:
        return self.MAX_SIGNATURE_SIZE_MB * 1024 * 1024
