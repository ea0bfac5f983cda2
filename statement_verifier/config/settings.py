"""Configuration for the statement verifier.

Module-level constants are read from the environment at import time and
serve as defaults. ``Settings.from_env()`` re-reads the environment so a
``.env`` file loaded after import still takes effect.
"""

import os
import json
from typing import Any, Callable, Dict, Optional, Tuple
from dataclasses import dataclass, asdict

# Inference service
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
CLASSIFY_MODEL = os.getenv("CLASSIFY_MODEL", "gpt-4o-2024-08-06")
DETAILS_MODEL = os.getenv("DETAILS_MODEL", "gpt-4o")
LEDGER_MODEL = os.getenv("LEDGER_MODEL", "o1")
FRAUD_MODEL = os.getenv("FRAUD_MODEL", "gpt-4o")
REASONING_EFFORT = os.getenv("REASONING_EFFORT", "medium") or None
ACCEPTANCE_THRESHOLD = int(os.getenv("ACCEPTANCE_THRESHOLD", "70"))

# Page rasterizer (poppler-utils)
RASTERIZER_BINARY = os.getenv("RASTERIZER_BINARY", "pdftoppm")
RASTERIZER_DPI = int(os.getenv("RASTERIZER_DPI", "150"))
RASTERIZER_TIMEOUT_SECONDS = int(os.getenv("RASTERIZER_TIMEOUT_SECONDS", "60"))
SUPPORTED_PDF_FORMATS = [".pdf"]
MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB", "100"))

# Background worker
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = "UTC"

# Directories, relative to the repository root unless overridden
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
REPORTS_DIR = os.getenv("REPORTS_DIR", os.path.join(BASE_DIR, "reports"))
LOGS_DIR = os.getenv("LOGS_DIR", os.path.join(BASE_DIR, "logs"))
TEMP_DIR = os.getenv("TEMP_DIR", os.path.join(BASE_DIR, "temp"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Excel report
EXCEL_OUTPUT_FORMAT = os.getenv("EXCEL_OUTPUT_FORMAT", "xlsx")


def _optional(value: str) -> Optional[str]:
    return value or None


# Environment variable -> (Settings field, converter)
ENV_FIELDS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "OPENAI_API_KEY": ("openai_api_key", _optional),
    "CLASSIFY_MODEL": ("classify_model", str),
    "DETAILS_MODEL": ("details_model", str),
    "LEDGER_MODEL": ("ledger_model", str),
    "FRAUD_MODEL": ("fraud_model", str),
    "REASONING_EFFORT": ("reasoning_effort", _optional),
    "ACCEPTANCE_THRESHOLD": ("acceptance_threshold", int),
    "RASTERIZER_BINARY": ("rasterizer_binary", str),
    "RASTERIZER_DPI": ("rasterizer_dpi", int),
    "RASTERIZER_TIMEOUT_SECONDS": ("rasterizer_timeout_seconds", int),
    "LOG_LEVEL": ("log_level", str),
    "LOG_FORMAT": ("log_format", str),
    "BASE_DIR": ("base_dir", str),
    "REPORTS_DIR": ("reports_dir", str),
    "LOGS_DIR": ("logs_dir", str),
    "TEMP_DIR": ("temp_dir", str),
    "MAX_FILE_SIZE_MB": ("max_file_size_mb", int),
    "CELERY_BROKER_URL": ("celery_broker_url", str),
    "CELERY_RESULT_BACKEND": ("celery_result_backend", str),
}


@dataclass
class Settings:
    """Runtime settings for one verifier process."""

    # Inference service
    openai_api_key: Optional[str] = None
    classify_model: str = "gpt-4o-2024-08-06"
    details_model: str = "gpt-4o"
    ledger_model: str = "o1"
    fraud_model: str = "gpt-4o"
    reasoning_effort: Optional[str] = "medium"
    acceptance_threshold: int = 70

    # Rasterizer
    rasterizer_binary: str = "pdftoppm"
    rasterizer_dpi: int = 150
    rasterizer_timeout_seconds: int = 60

    # Logging
    log_level: str = "INFO"
    log_format: str = LOG_FORMAT

    # Directories
    base_dir: str = BASE_DIR
    reports_dir: str = REPORTS_DIR
    logs_dir: str = LOGS_DIR
    temp_dir: str = TEMP_DIR

    # Input limits
    max_file_size_mb: int = 100

    # Background worker
    celery_broker_url: str = CELERY_BROKER_URL
    celery_result_backend: str = CELERY_RESULT_BACKEND

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment.

        Unset variables keep the dataclass defaults. An empty
        ``REASONING_EFFORT`` disables the reasoning effort option.

        Raises:
            ValueError: If a numeric variable is not an integer.
        """
        values = {}
        for env_name, (field_name, convert) in ENV_FIELDS.items():
            raw = os.environ.get(env_name)
            if raw is not None:
                values[field_name] = convert(raw)
        return cls(**values)

    def validate(self) -> bool:
        """Return False when a setting would make every run fail."""
        checks = [
            0 <= self.acceptance_threshold <= 100,
            self.rasterizer_dpi > 0,
            self.rasterizer_timeout_seconds > 0,
            bool(self.rasterizer_binary),
            self.max_file_size_mb > 0,
        ]
        return all(checks)

    def get_log_level(self) -> str:
        """Normalised log level name; unknown names fall back to INFO."""
        level = self.log_level.upper()
        return level if level in VALID_LOG_LEVELS else "INFO"

    def create_directories(self) -> None:
        for directory in (self.logs_dir, self.reports_dir, self.temp_dir):
            os.makedirs(directory, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise settings with the API key masked."""
        data = asdict(self)
        if data.get("openai_api_key"):
            data["openai_api_key"] = "***"
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        return cls(**data)

    def update(self, data: Dict[str, Any]) -> None:
        """Apply overrides by field name; unknown keys are ignored."""
        known = set(self.__dataclass_fields__)
        for key, value in data.items():
            if key in known:
                setattr(self, key, value)

    def is_debug_enabled(self) -> bool:
        return self.get_log_level() == "DEBUG"


def load_config_from_file(file_path: str) -> Dict[str, Any]:
    """Read a JSON object of setting overrides.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a JSON object.
    """
    with open(file_path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{file_path} must contain a JSON object")
    return data
