"""Judgment analysis: prompt, complete, validate, and repair at most once.

A request makes one completion call. If its normalized text is not JSON, one
repair call asks the model to re-emit it as JSON. If that fails too, the result
is the soft failure ``{"ok": false, "reason": "LLM_INVALID_JSON", "raw": ...}``
rather than an error: bad model output is a data outcome, not a server fault.
Transport and credential errors from either call propagate as
:class:`~judgment_analyzer.errors.AnalyzerError`.
"""
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from ..config import Settings
from ..errors import InvalidInput, MissingCredential
from ..prompting import build_messages, build_repair_messages
from ..registry import Mode, missing_top_level_keys, resolve_mode
from ..schemas import SoftFailure
from .completion import CompletionClient

logger = logging.getLogger(__name__)

INVALID_JSON_REASON = "LLM_INVALID_JSON"

_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```$")


@dataclass
class AnalysisOutcome:
    mode: Mode
    payload: Any
    calls: int
    repaired: bool = False
    ok: bool = True


def validate_text(text: Optional[str], min_chars: int) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise InvalidInput("text is required")
    if len(cleaned) < min_chars:
        raise InvalidInput(f"text is too short (minimum {min_chars} characters)")
    return cleaned


def normalize_completion(text: str) -> str:
    """Trim whitespace and strip a wrapping fenced code block such as ```json ... ```."""
    trimmed = (text or "").strip()
    trimmed = _FENCE_OPEN.sub("", trimmed, count=1)
    trimmed = _FENCE_CLOSE.sub("", trimmed, count=1)
    return trimmed.strip()


def try_parse_json(text: str) -> Tuple[bool, Any]:
    # JSON null is a valid document, so success is reported separately from the value.
    try:
        return True, json.loads(text, parse_float=_finite_float, parse_constant=_reject_constant)
    except ValueError:
        return False, None


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(literal: str) -> float:
    # 1e400 parses to inf, which the response renderer refuses
    value = float(literal)
    if math.isinf(value):
        raise ValueError(f"{literal} is out of float range")
    return value


async def analyze(mode: Any, text: Optional[str], *, client: CompletionClient, settings: Settings) -> AnalysisOutcome:
    source = validate_text(text, settings.min_text_chars)
    if not settings.api_key:
        raise MissingCredential()

    resolved = resolve_mode(mode)
    if mode is not None and resolved.value != str(mode).strip().lower():
        logger.info("Unrecognized mode %r, using %s", mode, resolved.value)
    logger.info("Analyzing %d characters in %s mode", len(source), resolved.value)
    messages = build_messages(resolved, source, max_chars=settings.max_text_chars, prompts=settings.prompts)

    first = await client.complete(messages, attempt="initial")
    normalized = normalize_completion(first)
    ok, payload = try_parse_json(normalized)
    if ok:
        _check_shape(resolved, payload)
        return AnalysisOutcome(mode=resolved, payload=payload, calls=1)

    logger.warning("Completion for %s mode is not valid JSON; requesting repair", resolved.value)
    repair_messages = build_repair_messages(first, max_chars=settings.max_repair_chars, prompts=settings.prompts)
    second = await client.complete(repair_messages, attempt="repair")
    repaired = normalize_completion(second)
    ok, payload = try_parse_json(repaired)
    if ok:
        _check_shape(resolved, payload)
        return AnalysisOutcome(mode=resolved, payload=payload, calls=2, repaired=True)

    logger.warning("Repair completion for %s mode is still not valid JSON", resolved.value)
    raw = (repaired or normalized)[: settings.max_raw_chars]
    failure = SoftFailure(reason=INVALID_JSON_REASON, raw=raw)
    return AnalysisOutcome(mode=resolved, payload=failure.model_dump(), calls=2, repaired=True, ok=False)


def _check_shape(mode: Mode, payload: Any) -> None:
    missing = missing_top_level_keys(mode, payload)
    if missing:
        logger.warning("Payload for %s mode lacks top-level keys: %s", mode.value, ", ".join(missing))
