from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url


class Env(str, Enum):
    DEV = "dev"
    HML = "hml"
    PROD = "prod"


class Settings(BaseSettings):
    APP_ENV: Env = Env.DEV
    DEBUG: bool = False

    # Banco: ou DATABASE_URL completa, ou as partes abaixo
    DATABASE_URL: str | None = None
    DB_DRIVER: str = "mysql+pymysql"
    DB_HOST: str | None = None
    DB_PORT: int = 3306
    DB_USER: str | None = None
    DB_PASSWORD: str | None = None
    DB_NAME: str | None = None
    DB_SSL: bool = False
    # só ligue com a CA confiável instalada na imagem
    DB_SSL_REJECT_UNAUTHORIZED: bool = False
    DB_POOL_SIZE: int = 10
    DB_BOOTSTRAP: bool = True

    API_PREFIX: str = "/api"
    DEFAULT_PAGE_SIZE: int = 10

    SESSION_SECRET: str = "dev-change-me"
    SECURE_COOKIES: bool = False
    ALLOWED_HOSTS: str = "localhost,127.0.0.1"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def missing_db_parts(self) -> list[str]:
        if self.DATABASE_URL:
            return []
        parts = {"DB_HOST": self.DB_HOST, "DB_USER": self.DB_USER, "DB_NAME": self.DB_NAME}
        return [name for name, value in parts.items() if not value]

    def database_url(self) -> URL:
        if self.DATABASE_URL:
            return make_url(self.DATABASE_URL)
        return URL.create(
            self.DB_DRIVER,
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
            query={"charset": "utf8mb4"} if self.DB_DRIVER.startswith("mysql") else {},
        )

    def connect_args(self) -> dict:
        if not self.DB_SSL:
            return {}
        if self.DB_SSL_REJECT_UNAUTHORIZED:
            return {"ssl": {"verify_mode": "required"}}
        return {"ssl": {"check_hostname": False, "verify_mode": "none"}}


# cria instância global
settings = Settings()
