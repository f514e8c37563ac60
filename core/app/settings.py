from pathlib import Path

from pydantic_settings import BaseSettings

APP_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DB_PATH: str = str(APP_DIR / "data" / "templates.db")

    SEED_DEFAULT_TEMPLATES: bool = True
    DEFAULT_TEMPLATES_PATH: str = str(APP_DIR / "data" / "default_templates.yaml")

    BACKGROUNDS_DIR: str = str(APP_DIR / "data" / "backgrounds")
    BACKGROUNDS_URL: str = "/backgrounds"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
