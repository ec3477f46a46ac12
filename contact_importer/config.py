from dataclasses import dataclass, field
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Brevo settings (the API key may also live in the credential store)
    BREVO_API_KEY: str | None = None
    BREVO_API_BASE_URL: str = "https://api.brevo.com/v3"
    BREVO_LIST_ID: int | None = None

    # Gmail OAuth settings
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_REFRESH_TOKEN: str | None = None

    # Credential store
    REDIS_URL: str = "redis://localhost:6379/0"
    ENCRYPTION_KEY: str | None = None

    # Gmail labels driving the import
    IMPORT_LABEL_PENDING: str = "Brevo/Import"
    IMPORT_LABEL_SUCCESS: str = "Brevo/Imported"
    IMPORT_LABEL_ERROR: str = "Brevo/Error"

    # =================================================================
    # RUN LIMITS - keep a single run well inside the scheduler window
    # =================================================================
    IMPORT_MAX_THREADS: int = 50
    IMPORT_BATCH_SIZE: int = 10
    IMPORT_BATCH_DELAY_SECONDS: float = 1.0
    IMPORT_TIME_LIMIT_SECONDS: float = 240.0  # 4 minutes
    BREVO_REQUEST_DELAY_SECONDS: float = 0.1

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@dataclass(frozen=True)
class LabelNames:
    """Names of the three Gmail labels the importer manages."""

    pending: str = "Brevo/Import"
    success: str = "Brevo/Imported"
    error: str = "Brevo/Error"

    def all(self) -> tuple[str, str, str]:
        return (self.pending, self.success, self.error)


@dataclass(frozen=True)
class SchedulingPolicy:
    """Batching, pacing and time budget for one import run."""

    max_threads: int = 50
    batch_size: int = 10
    inter_batch_delay_seconds: float = 1.0
    inter_request_delay_seconds: float = 0.1
    time_ceiling_seconds: float = 240.0

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.max_threads < 1:
            raise ValueError("max_threads must be at least 1")


@dataclass(frozen=True)
class ImportConfig:
    """
    Immutable configuration handed to the import job at construction.

    Built from Settings in production; tests construct it directly.
    """

    api_key: str | None
    list_id: int | None
    api_base_url: str = "https://api.brevo.com/v3"
    labels: LabelNames = field(default_factory=LabelNames)
    policy: SchedulingPolicy = field(default_factory=SchedulingPolicy)

    @classmethod
    def from_settings(cls, settings: Settings, api_key: str | None = None) -> "ImportConfig":
        return cls(
            api_key=api_key if api_key is not None else settings.BREVO_API_KEY,
            list_id=settings.BREVO_LIST_ID,
            api_base_url=settings.BREVO_API_BASE_URL.rstrip("/"),
            labels=LabelNames(
                pending=settings.IMPORT_LABEL_PENDING,
                success=settings.IMPORT_LABEL_SUCCESS,
                error=settings.IMPORT_LABEL_ERROR,
            ),
            policy=SchedulingPolicy(
                max_threads=settings.IMPORT_MAX_THREADS,
                batch_size=settings.IMPORT_BATCH_SIZE,
                inter_batch_delay_seconds=settings.IMPORT_BATCH_DELAY_SECONDS,
                inter_request_delay_seconds=settings.BREVO_REQUEST_DELAY_SECONDS,
                time_ceiling_seconds=settings.IMPORT_TIME_LIMIT_SECONDS,
            ),
        )


settings = Settings()
