from typing import List

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    app_name: str = "Clinic EMR"

    # Use SQLite for development if DATABASE_URL not set
    database_url: str = Field(
        default="sqlite:///./emr_dev.db",
        alias="DATABASE_URL",
    )
    jwt_secret_key: str = Field(default="change-this-secret", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256")
    # One week, same lifetime as the browser session
    access_token_expire_minutes: int = Field(default=7 * 24 * 60)

    # Shared secret the identity provider signs login assertions with
    identity_secret: str = Field(default="change-this-identity-secret", alias="IDENTITY_SECRET")

    cors_origins: List[str] = Field(default=["http://localhost:5173", "http://127.0.0.1:5173"])
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # Placeholder until billing exists
    monthly_revenue: int = Field(default=47250)

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


settings = Settings()
