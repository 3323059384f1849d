"""Load and validate environment variables. Uses python-dotenv.

This module is intentionally thin and side-effect free except for loading `.env`.
Callers should use the accessor functions below rather than reading `os.environ`
directly, to keep environment handling consistent.
"""

from pathlib import Path

from dotenv import load_dotenv
import os

DEFAULT_CACHE_KEY = "venus_dialogics_db_v1"
DEFAULT_ADMIN_PASSWORD = "Johen377"


def _project_root() -> Path:
    """Resolve project root (the directory holding app.py)."""
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; safe to call multiple times.
    Uses override=True to ensure .env values take precedence over existing env vars.
    """
    root = _project_root()
    env_path = root / ".env"
    load_dotenv(env_path, override=True)


def get_required(key: str) -> str:
    """
    Get required env var. Raises if missing or empty.

    Raises:
        ValueError: If key is missing or empty after trimming.
    """
    load_config()
    val = os.getenv(key, "").strip()
    if not val:
        raise ValueError(
            f"Missing required environment variable: {key}. "
            "Set it in .env or export it."
        )
    return val


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_int(key: str, default: int) -> int:
    """Get optional env var as int; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- Public config accessors ---

def store_api_url() -> str | None:
    """Optional: remote store endpoint. Unset means local-cache-only mode."""
    val = get_optional("STORE_API_URL", "")
    return val or None


def store_timeout_seconds() -> int:
    """Optional: HTTP timeout for the remote store. Default 10."""
    return get_optional_int("STORE_TIMEOUT_SECONDS", 10)


def cache_dir() -> Path:
    """Optional: directory holding the local durable cache. Default data/cache."""
    raw = get_optional("CACHE_DIR", "")
    if raw:
        return Path(raw).expanduser()
    return _project_root() / "data" / "cache"


def cache_key() -> str:
    """Optional: name of the local cache slot. Default venus_dialogics_db_v1."""
    return get_optional("CACHE_KEY", DEFAULT_CACHE_KEY)


def admin_password() -> str:
    """Optional: shared admin secret. Falls back to the shipped default."""
    return get_optional("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)


def grok_api_key() -> str:
    """Required: Grok API key for xAI (when LLM_PROVIDER=grok)."""
    return get_required("GROK_API_KEY")


def groq_api_key() -> str:
    """Required: Groq API key (when LLM_PROVIDER=groq)."""
    return get_required("GROQ_API_KEY")


def llm_provider() -> str:
    """Optional: LLM provider. Default groq. Use grok for xAI."""
    return get_optional("LLM_PROVIDER", "groq").lower().strip()


def llm_base_url() -> str:
    """Chat completions URL for the active LLM provider."""
    if llm_provider() == "grok":
        return "https://api.x.ai/v1/chat/completions"
    return "https://api.groq.com/openai/v1/chat/completions"


def llm_api_key() -> str:
    """API key for the active LLM provider."""
    if llm_provider() == "grok":
        return grok_api_key()
    return groq_api_key()


def llm_model() -> str:
    """Model name for the active LLM provider."""
    if llm_provider() == "grok":
        return get_optional("GROK_MODEL", "grok-4-1-fast")
    return get_optional("GROQ_MODEL", "llama-3.3-70b-versatile")


def llm_max_tokens() -> int:
    """Optional: max tokens for assistant replies. Default 800."""
    return get_optional_int("LLM_MAX_TOKENS", 800)


def log_level() -> str:
    """Optional: logging level name. Default INFO."""
    return get_optional("LOG_LEVEL", "INFO").upper()


def log_file() -> Path | None:
    """Optional: path of a log file written alongside stderr."""
    val = get_optional("LOG_FILE", "")
    return Path(val).expanduser() if val else None


def project_root() -> Path:
    """Project root directory."""
    return _project_root()
