"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage backend: "identity", "signed", or "auto" (signed when a key is set)
    STORAGE_BACKEND: str = "auto"

    # Azure Blob Storage
    AZURE_STORAGE_ACCOUNT_NAME: str = ""
    AZURE_STORAGE_ACCOUNT_KEY: str = ""
    AZURE_STORAGE_ENDPOINT: str = ""
    AZURE_CONTAINER_NAME: str = "files"
    STORAGE_BASE_PATH: str = "images"

    # Signed URLs
    SAS_TTL_MINUTES: int = 5

    # Application
    APP_NAME: str = "Filestore - Azure Blob file service"
    APP_ENV: str = "dev"
    MAX_FILE_SIZE_MB: int = 25

    # Avatars
    AVATAR_SIZE_PX: int = 250

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


# Global settings instance
settings = Settings()
