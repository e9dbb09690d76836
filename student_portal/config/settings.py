from typing import List, Optional, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "development"
    NAME: str = "Student Portal"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api/v1"
    """Pydantic v2 doesn't support parsing List[str] from a plain comma-separated string by default anymore."""
    ALLOWED_HOSTS: Union[str, List[str]] = "http://localhost:3000,http://localhost:8000"
    LOG_LEVEL: Optional[str] = None
    COOKIE_DOMAIN: Optional[str] = None

    # Document store
    DATABASE_URL: str = "sqlite:///./students.db"
    STUDENTS_COLLECTION: str = "students"
    DELETE_MISSING_RAISES: bool = False

    # Authentication
    JWT_SECRET_KEY: str = "change-me-in-production-with-a-32-byte-secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "admin12345"

    # Postal code lookup
    POSTAL_LOOKUP_URL: str = "https://api.postalpincode.in/pincode"
    POSTAL_LOOKUP_TIMEOUT: float = 10.0

    # Presentation
    NOTIFICATION_AUTO_CLOSE_SECONDS: float = 3.0
    MOBILE_BREAKPOINT_PX: int = 600

    @field_validator("ALLOWED_HOSTS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if not v:
            return []
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
