from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ARISTOTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Direct URL override (takes precedence if set)
    database_url: str | None = None

    # Individual DB params (used if database_url is not provided)
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "aristotest"
    db_user: str = "postgres"
    db_password: str = "postgres"

    # Keep raw string to avoid JSON parsing issues for lists
    cors_origins_raw: str = Field(default="*")

    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    # Live sessions
    session_code_length: int = Field(default=6, ge=4, le=10)
    session_code_attempts: int = Field(default=10, ge=1)
    default_question_time: int = Field(default=30, ge=10, le=300)
    max_speed_bonus: float = Field(default=0.5, ge=0)
    leaderboard_size: int = Field(default=10, ge=1)
    state_push_interval: float = Field(default=1.0, gt=0)

    # Public quizzes
    default_pass_percentage: float = Field(default=70.0, ge=0, le=100)

    # AI question drafting
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 30.0

    @property
    def assembled_db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def cors_origins(self) -> list[str]:
        raw = self.cors_origins_raw
        if not raw:
            return []
        return [part.strip() for part in raw.split(",") if part.strip()]
