"""Application configuration loaded from environment variables and .env file."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./saves.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 설정 테이블 (洞府/灵草/聚灵阵/灵宠/丹方)
    GAME_DATA_PATH: str = str(Path(__file__).resolve().parent / "data" / "game_data.json")

    # 저장 슬롯
    DEFAULT_SAVE_SLOT: int = 1
    MAX_LOG_HISTORY: int = 200

    # AI Provider settings (기연 생성기)
    AI_PROVIDER: str = "mock"
    AI_API_KEY: Optional[str] = None
    AI_MODEL: Optional[str] = None
    AI_TEMPERATURE: float = 0.95


settings = Settings()
