"""Configuration management for the campusbot application."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)

SHEET_EXPORT_URL = (
    "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"
)


class Config:
    """Application configuration loaded from environment variables."""

    # OpenAI-compatible provider configuration
    @classmethod
    def get_openai_api_key(cls) -> str:
        """Get the OpenAI API key from environment variables.

        Returns:
            OpenAI API key from environment or empty string if not set.
        """
        return os.getenv("OPENAI_API_KEY", "")

    OPENAI_BASE_URL: str | None = os.getenv("OPENAI_BASE_URL")

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    OPENAI_LOG_LEVEL: str = os.getenv("OPENAI_LOG_LEVEL", "WARNING").upper()

    # Application Settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    HOST: str = os.getenv("HOST", "0.0.0.0")  # noqa: S104
    PORT: int = int(os.getenv("PORT", "3000"))

    # Embedding Configuration
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    EMBEDDING_MAX_WORKERS: int = int(os.getenv("EMBEDDING_MAX_WORKERS", "4"))

    # Chat Model Configuration
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "gpt-4.1-nano-2025-04-14")
    CHAT_MAX_TOKENS: int = int(os.getenv("CHAT_MAX_TOKENS", "1000"))
    CHAT_TEMPERATURE: float = float(os.getenv("CHAT_TEMPERATURE", "0.2"))

    # Retrieval Configuration
    TOP_K: int = int(os.getenv("TOP_K", "5"))

    # Google Sheets Configuration
    GOOGLE_SHEET_ID: str = os.getenv("GOOGLE_SHEET_ID", "")
    STUDENTS_GID: str | None = os.getenv("STUDENTS_GID", "0")
    TEACHERS_GID: str | None = os.getenv("TEACHERS_GID")
    GUEST_TEACHERS_GID: str | None = os.getenv("GUEST_TEACHERS_GID")
    SCHEDULE_GID: str | None = os.getenv("SCHEDULE_GID")
    SUBJECTS_GID: str | None = os.getenv("SUBJECTS_GID")
    FAQ_GID: str | None = os.getenv("FAQ_GID")
    ROOMS_GID: str | None = os.getenv("ROOMS_GID")
    SHEETS_TIMEOUT: float = float(os.getenv("SHEETS_TIMEOUT", "15"))

    # LINE Messaging Configuration
    @classmethod
    def get_line_channel_secret(cls) -> str:
        """Get the LINE channel secret used to verify webhook signatures.

        Returns:
            Channel secret from environment or empty string if not set.
        """
        return os.getenv("LINE_CHANNEL_SECRET", "")

    @classmethod
    def get_line_channel_access_token(cls) -> str:
        """Get the LINE channel access token used for replies.

        Returns:
            Channel access token from environment or empty string if not set.
        """
        return os.getenv("LINE_CHANNEL_ACCESS_TOKEN", "")

    LINE_TIMEOUT: float = float(os.getenv("LINE_TIMEOUT", "10"))

    # API Header Configuration
    API_USER_AGENT: str = os.getenv("API_USER_AGENT", "campusbot/1.0")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration values.

        Raises:
            ValueError: If OPENAI_API_KEY or GOOGLE_SHEET_ID is not set.
        """
        if not cls.get_openai_api_key():
            msg = (
                "OPENAI_API_KEY is required. Please set it in .env file or environment."
            )
            raise ValueError(msg)
        if not cls.GOOGLE_SHEET_ID:
            msg = (
                "GOOGLE_SHEET_ID is required. Please set it in .env file or environment."
            )
            raise ValueError(msg)
        if not cls.get_line_channel_secret() or not cls.get_line_channel_access_token():
            cls.get_logger(__name__).warning(
                "LINE credentials are missing; the webhook will not be able to reply"
            )

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development environment.

        Returns:
            True if environment is development.
        """
        return cls.ENVIRONMENT.lower() == "development"

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment.

        Returns:
            True if environment is production.
        """
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def setup_logging(cls) -> None:
        """Setup basic logging configuration.

        Configure logging once at application startup with:
        - Console output for all levels
        - Simple, readable format
        - Configurable level via environment variable
        """
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )

        # HTTP client chatter from the provider SDK and sheet downloads
        third_party_level = getattr(logging, cls.OPENAI_LOG_LEVEL, logging.WARNING)
        for name in ("openai", "httpx", "urllib3"):
            logging.getLogger(name).setLevel(third_party_level)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger with the specified name.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def get_api_headers(cls) -> dict[str, str]:
        """Build default headers for outbound API calls.

        Returns:
            Mapping of header names to values used on outbound HTTP requests.
        """
        headers: dict[str, str] = {}

        if cls.API_USER_AGENT:
            headers["User-Agent"] = cls.API_USER_AGENT

        return headers

    @classmethod
    def sheet_gids(cls) -> dict[str, str | None]:
        """Map each record category to its configured sheet gid.

        Returns:
            Category value to gid (None when the sheet is not configured).
        """
        return {
            "student": cls.STUDENTS_GID,
            "teacher": cls.TEACHERS_GID,
            "guest_teacher": cls.GUEST_TEACHERS_GID,
            "schedule": cls.SCHEDULE_GID,
            "subject": cls.SUBJECTS_GID,
            "faq": cls.FAQ_GID,
            "room": cls.ROOMS_GID,
        }

    @classmethod
    def sheet_url(cls, gid: str, sheet_id: str | None = None) -> str:
        """Build the CSV export URL for one tab of the spreadsheet.

        Returns:
            Google Sheets CSV export URL.
        """
        return SHEET_EXPORT_URL.format(
            sheet_id=sheet_id or cls.GOOGLE_SHEET_ID,
            gid=gid,
        )


config = Config()
