from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseModel):
    env: str = Field(default="production", alias="ENV")
    timezone: str = Field(default="Asia/Jakarta", alias="TIMEZONE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(default="", alias="DATABASE_URL")
    postgres_db: str = Field(default="bowar", alias="POSTGRES_DB")
    postgres_user: str = Field(default="bowar", alias="POSTGRES_USER")
    postgres_password: str = Field(default="bowar", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")

    jwt_secret: str = Field(default="secret", alias="JWT_SECRET")
    jwt_expire_min: int = Field(default=43200, alias="JWT_EXPIRE_MIN")

    cors_origins: str = Field(
        default="https://frontend-bowar.vercel.app,http://localhost:5173",
        alias="CORS_ORIGINS",
    )
    upload_dir: str = Field(default=str(BASE_DIR / "public" / "uploads"), alias="UPLOAD_DIR")

    default_operator_username: str = Field(default="operator", alias="DEFAULT_OPERATOR_USERNAME")
    default_operator_email: str = Field(default="operator@bowar.local", alias="DEFAULT_OPERATOR_EMAIL")
    default_operator_password: str = Field(default="operator123", alias="DEFAULT_OPERATOR_PASSWORD")

    class Config:
        populate_by_name = True

    @property
    def is_development(self) -> bool:
        return self.env.lower() in {"dev", "development"}

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(dotenv_path=BASE_DIR / ".env", override=False)
    return Settings(**os.environ)
