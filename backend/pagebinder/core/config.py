"""
PageBinder — Backend Configuration
Loads .env automatically, then reads all settings from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)


@dataclass(frozen=True)
class OCRConfig:
    """Remote OCR (Vision-style images:annotate) endpoint."""
    base_url: str
    api_key: str
    default_language: str


@dataclass(frozen=True)
class StorageConfig:
    output_dir: str
    projects_file: str
    max_projects: int


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""
    host: str
    port: int
    debug: bool
    storage: StorageConfig
    ocr: OCRConfig
    max_upload_mb: float
    fetch_timeout: float


def _load_config() -> AppConfig:
    data_dir = os.getenv(
        "PAGEBINDER_DATA_DIR",
        os.path.join(os.path.dirname(__file__), "..", "..", "..", "data"),
    )
    return AppConfig(
        host=os.getenv("APP_HOST", "0.0.0.0"),
        port=int(os.getenv("APP_PORT", "8000")),
        debug=os.getenv("APP_DEBUG", "false").lower() == "true",
        storage=StorageConfig(
            output_dir=os.getenv("PAGEBINDER_OUTPUT_DIR", os.path.join(data_dir, "documents")),
            projects_file=os.getenv("PAGEBINDER_PROJECTS_FILE", os.path.join(data_dir, "projects.json")),
            max_projects=int(os.getenv("PAGEBINDER_MAX_PROJECTS", "50")),
        ),
        ocr=OCRConfig(
            base_url=os.getenv("OCR_BASE_URL", "https://vision.googleapis.com"),
            api_key=os.getenv("OCR_API_KEY", ""),
            default_language=os.getenv("OCR_DEFAULT_LANGUAGE", "ar"),
        ),
        max_upload_mb=float(os.getenv("PAGEBINDER_MAX_UPLOAD_MB", "10")),
        fetch_timeout=float(os.getenv("PAGEBINDER_FETCH_TIMEOUT", "30.0")),
    )


settings = _load_config()
