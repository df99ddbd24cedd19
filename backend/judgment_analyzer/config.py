import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import pathlib
import yaml

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.x.ai/v1"
DEFAULT_MODEL = "grok-4"
MAX_TEMPERATURE = 0.2


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    base_url: str
    model: str
    max_tokens: Optional[int]
    temperature: float
    timeout_seconds: float
    proxy_url: Optional[str]
    proxy_fallback_direct: bool
    max_text_chars: int
    min_text_chars: int
    max_repair_chars: int
    max_raw_chars: int
    cors_allow_origins: List[str]
    log_level: str
    prompts: dict = field(default_factory=dict)


def load_settings() -> Settings:
    cors_env = os.getenv("CORS_ALLOW_ORIGINS", "*")
    cors = [o.strip() for o in cors_env.split(",") if o.strip()] or ["*"]
    temperature = _float_env("LLM_TEMPERATURE", MAX_TEMPERATURE)
    return Settings(
        api_key=_first_env("XAI_API_KEY", "OPENAI_API_KEY"),
        base_url=(_first_env("XAI_BASE", "OPENAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        model=_first_env("XAI_MODEL", "OPENAI_MODEL") or DEFAULT_MODEL,
        max_tokens=_int_env(("LLM_MAX_TOKENS", "OPENAI_MAX_TOKENS"), None),
        temperature=min(max(temperature, 0.0), MAX_TEMPERATURE),
        timeout_seconds=_float_env("LLM_TIMEOUT_SECONDS", 60.0),
        proxy_url=_first_env("HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy"),
        proxy_fallback_direct=_flag_env("LLM_PROXY_FALLBACK_DIRECT"),
        max_text_chars=_int_env(("ANALYZE_MAX_TEXT_CHARS",), 12000),
        min_text_chars=_int_env(("ANALYZE_MIN_TEXT_CHARS",), 10),
        max_repair_chars=_int_env(("ANALYZE_MAX_REPAIR_CHARS",), 8000),
        max_raw_chars=_int_env(("ANALYZE_MAX_RAW_CHARS",), 5000),
        cors_allow_origins=cors,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        prompts=_load_prompts(),
    )


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


def _int_env(names: Sequence[str], default: Optional[int]) -> Optional[int]:
    raw = _first_env(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _float_env(name: str, default: float) -> float:
    raw = _first_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _flag_env(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in {"1", "true", "yes"}


def _load_prompts() -> dict:
    # Look for prompts.yml in backend root (parent of judgment_analyzer/) unless PROMPTS_PATH is set
    override = os.getenv("PROMPTS_PATH")
    if override:
        prompts_path = pathlib.Path(override)
    else:
        prompts_path = pathlib.Path(__file__).resolve().parents[1] / "prompts.yml"
    if not prompts_path.is_file():
        return {}
    try:
        with open(prompts_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring prompt overrides in %s: %s", prompts_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring prompt overrides in %s: top level is not a mapping", prompts_path)
        return {}
    return data
