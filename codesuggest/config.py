"""
Runtime settings, read from the environment.
"""
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

DEFAULT_EXCLUDED_PATTERNS = "*.min.js,*.min.css,*.map,*.lock,package-lock.json,yarn.lock"
DEFAULT_LANGUAGES = (
    "java,javascript,typescript,python,go,kotlin,scala,ruby,php,csharp,cpp,c,rust,swift"
)


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-separated setting, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _get_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _get_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Settings consumed by the analysis pipeline, merge gate and API."""
    model_config = ConfigDict(frozen=True)

    # LLM
    llm_provider: str = "auto"
    llm_base_url: str = "http://localhost:11434"
    llm_api_key: str = ""
    llm_model: str = "codellama:13b"
    llm_temperature: float = 0.1
    llm_max_tokens: int = 4096
    llm_timeout_seconds: float = 120.0

    # Analysis and gating
    auto_analysis_enabled: bool = True
    merge_check_enabled: bool = False
    merge_check_max_critical: int = 0
    min_confidence: float = 0.7
    analysis_workers: int = 2

    # Files
    excluded_file_patterns: List[str] = split_csv(DEFAULT_EXCLUDED_PATTERNS)
    supported_languages: List[str] = split_csv(DEFAULT_LANGUAGES)
    max_files_per_analysis: int = 50
    max_file_size_kb: int = 500

    # Storage and integrations
    suggestion_store: str = "memory"
    chroma_db_path: str = "./chroma_db"
    github_token: str = ""
    github_webhook_secret: str = ""

    # Logging and server
    log_level: str = "INFO"
    log_format: str = "console"
    api_port: int = 8000

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables (and a .env file if present)."""
        if dotenv:
            load_dotenv()

        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "auto").strip().lower(),
            llm_base_url=os.getenv("LLM_BASE_URL", "http://localhost:11434").rstrip("/"),
            llm_api_key=os.getenv("LLM_API_KEY", ""),
            llm_model=os.getenv("LLM_MODEL", "codellama:13b"),
            llm_temperature=_get_float("LLM_TEMPERATURE", 0.1),
            llm_max_tokens=_get_int("LLM_MAX_TOKENS", 4096),
            llm_timeout_seconds=_get_float("LLM_TIMEOUT_SECONDS", 120.0),
            auto_analysis_enabled=_get_bool("AUTO_ANALYSIS_ENABLED", True),
            merge_check_enabled=_get_bool("MERGE_CHECK_ENABLED", False),
            merge_check_max_critical=_get_int("MERGE_CHECK_MAX_CRITICAL", 0),
            min_confidence=_get_float("MIN_CONFIDENCE", 0.7),
            analysis_workers=max(1, _get_int("ANALYSIS_WORKERS", 2)),
            excluded_file_patterns=split_csv(
                os.getenv("EXCLUDED_FILE_PATTERNS", DEFAULT_EXCLUDED_PATTERNS)
            ),
            supported_languages=split_csv(os.getenv("SUPPORTED_LANGUAGES", DEFAULT_LANGUAGES)),
            max_files_per_analysis=_get_int("MAX_FILES_PER_ANALYSIS", 50),
            max_file_size_kb=_get_int("MAX_FILE_SIZE_KB", 500),
            suggestion_store=os.getenv("SUGGESTION_STORE", "memory").strip().lower(),
            chroma_db_path=os.getenv("CHROMA_DB_PATH", "./chroma_db"),
            github_token=os.getenv("GITHUB_TOKEN", ""),
            github_webhook_secret=os.getenv("GITHUB_WEBHOOK_SECRET", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "console").lower(),
            api_port=_get_int("API_PORT", 8000),
        )

    def public_view(self) -> dict:
        """Settings as shown to administrators, without secrets."""
        data = self.model_dump(exclude={"llm_api_key", "github_token", "github_webhook_secret"})
        data["llm_has_api_key"] = bool(self.llm_api_key)
        data["github_has_token"] = bool(self.github_token)
        data["webhook_secret_configured"] = bool(self.github_webhook_secret)
        return data
