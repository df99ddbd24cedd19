import logging
from typing import Any, List, Mapping, Optional, Tuple

from .registry import lookup
from .schemas import ChatMessage

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n[TEXT TRUNCATED: the remainder of the document was omitted]"
REPAIR_SYSTEM_PROMPT = (
    "You are a JSON-repair assistant. Return ONLY a valid JSON string, preserving the original meaning, "
    "with no extra text."
)
REPAIR_USER_PROMPT = "Repair the following content into valid JSON (keep its meaning):\n{raw}"


def truncate_text(text: str, max_chars: int) -> Tuple[str, bool]:
    """Cut ``text`` to ``max_chars`` and append the truncation marker when cut."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text, False
    return text[:max_chars] + TRUNCATION_MARKER, True


def render_user_prompt(template: str, *, schema: str, text: str) -> str:
    # Plain replacement: the exemplar and the document both contain braces.
    return template.replace("{schema}", schema).replace("{text}", text)


def build_messages(
    mode,
    raw_text: str,
    *,
    max_chars: int,
    prompts: Optional[Mapping[str, Any]] = None,
) -> List[ChatMessage]:
    """Build the ``[system, user]`` message pair for one analysis request.

    ``raw_text`` must already have passed input validation; the builder does
    not reject short text.
    """
    overrides = (prompts or {}).get("modes") if prompts else None
    entry = lookup(mode, overrides if isinstance(overrides, Mapping) else None)
    source = raw_text.strip()
    text, truncated = truncate_text(source, max_chars)
    if truncated:
        logger.info("Input of %d characters truncated to %d for %s mode", len(source), max_chars, entry.mode.value)
    return [
        ChatMessage(role="system", content=entry.prompts.system),
        ChatMessage(role="user", content=render_user_prompt(entry.prompts.user, schema=entry.schema, text=text)),
    ]


def build_repair_messages(
    raw_completion: str,
    *,
    max_chars: int,
    prompts: Optional[Mapping[str, Any]] = None,
) -> List[ChatMessage]:
    """Build the single JSON-repair request for an unparsable completion."""
    repair = (prompts or {}).get("repair") if prompts else None
    repair = repair if isinstance(repair, Mapping) else {}
    system = repair.get("system")
    if not isinstance(system, str) or not system.strip():
        system = REPAIR_SYSTEM_PROMPT
    user = repair.get("user")
    if not isinstance(user, str) or "{raw}" not in user:
        user = REPAIR_USER_PROMPT
    bounded = raw_completion[:max_chars] if max_chars > 0 else raw_completion
    return [
        ChatMessage(role="system", content=system),
        ChatMessage(role="user", content=user.replace("{raw}", bounded)),
    ]

