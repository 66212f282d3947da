from pydantic import Field
from pydantic_settings import BaseSettings

from app.core.enums import DocumentType

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Agency Verification API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"
    max_upload_size_mb: int = 10

    # Database (PostgreSQL / Azure SQL in production, SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./agency_verification_dev.db",
        alias="DATABASE_URL",
    )

    # Byte storage root for uploaded compliance documents
    agency_docs_path: str = Field(default="./data/agency-docs", alias="AGENCY_DOCS_PATH")

    allowed_content_types: list[str] = Field(
        default=["application/pdf", "image/png", "image/jpeg", "image/jpg"],
        alias="ALLOWED_CONTENT_TYPES",
    )

    # Document types whose latest version must be accepted for an agency
    # to be marked verified. JSON list in the environment.
    required_document_types: list[DocumentType] = Field(
        default=[DocumentType.REGISTRATION_CERTIFICATE, DocumentType.TAX_ID],
        alias="REQUIRED_DOCUMENT_TYPES",
    )

    # Attempts at inserting a version before a number collision is surfaced
    version_append_max_retries: int = Field(default=5, ge=1, alias="VERSION_APPEND_MAX_RETRIES")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

settings = Settings()
