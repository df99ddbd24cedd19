"""Mode registry: output JSON exemplar and prompt pair for each analysis mode.

The exemplars are instructions for the model, not enforced schemas. The only
programmatic use beyond prompting is :func:`missing_top_level_keys`, which
reports (but never rejects) payloads that drop a top-level key.
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    LAWYER = "lawyer"
    CORPORATE = "corporate"
    MEDIA = "media"
    PUBLIC = "public"


DEFAULT_MODE = Mode.LAWYER


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str


@dataclass(frozen=True)
class RegistryEntry:
    mode: Mode
    schema: str
    prompts: PromptPair


SCHEMAS: Dict[Mode, str] = {
    Mode.LAWYER: (
        '{"case_meta":{"case_no":"","court":"","date":"","cause":""},'
        '"parties":[{"role":"","name":""}],"issues":["..."],'
        '"evidence_chain":[{"evidence":"","source_paragraph":"","supports_fact":"","probative_weight":1}],'
        '"statutes":[{"law":"","article":"","quote_or_ref":"","application_reasoning":""}],'
        '"holdings":"","ratio_decidendi":"","obiter_dicta":"","our_side_arguments":["..."],'
        '"risks":[{"level":"高|中|低","reason":"","mitigation":""}]}'
    ),
    Mode.CORPORATE: (
        '{"overview":{"overall_risk":"高|中|低","monetary_exposure_range":"80万-120万",'
        '"business_domain":"","region":"","time":""},'
        '"claims_against_company":[{"type":"","amount":"","status":"认定|驳回|部分支持"}],'
        '"compliance_gaps":["..."],"action_items":["..."],"watchlist_keywords":["..."],'
        '"aggregation_keys":{"cause":"","industry":"","province":"","year":""}}'
    ),
    Mode.MEDIA: (
        '{"newsworthiness_score":0,"headline":"",'
        '"six_w":{"who":"","what":"","when":"","where":"","why":"","how":""},'
        '"precedent_or_context":["..."],"pull_quotes":[{"text":"","source":"原文段落/忠实转述"}],'
        '"tags":["..."],"related_cases_query":"..."}'
    ),
    Mode.PUBLIC: (
        '{"plain_summary":"150-200字","result":"法院判了什么","why":"简述裁判理由",'
        '"rights_and_duties":["..."],"faq":[{"q":"","a":""}]}'
    ),
}

# {schema} and {text} are filled by the prompt builder.
PROMPTS: Dict[Mode, PromptPair] = {
    Mode.LAWYER: PromptPair(
        system=(
            "You are a senior litigation assistant for judgment analysis. Use ONLY the provided text. "
            "Output MUST be valid JSON and nothing else."
        ),
        user="Return JSON ONLY (no extra words):\n{schema}\n\n[ORIGINAL TEXT]\n{text}",
    ),
    Mode.CORPORATE: PromptPair(
        system="You are a corporate legal risk analysis assistant. Use ONLY the provided text. Output JSON only.",
        user="Return JSON ONLY:\n{schema}\n\n[ORIGINAL TEXT]\n{text}",
    ),
    Mode.MEDIA: PromptPair(
        system="You are a research assistant for legal/news editors. Use ONLY the provided text. Output JSON only.",
        user="Return JSON ONLY:\n{schema}\n\n[ORIGINAL TEXT]\n{text}",
    ),
    Mode.PUBLIC: PromptPair(
        system="You explain judgments in plain language for the public. Use ONLY the provided text. Output JSON only.",
        user="Return JSON ONLY:\n{schema}\n\n[ORIGINAL TEXT]\n{text}",
    ),
}


def resolve_mode(value: Any) -> Mode:
    """Map a request's mode field to a Mode, falling back to lawyer."""
    if value is None:
        return DEFAULT_MODE
    try:
        return Mode(str(value).strip().lower())
    except ValueError:
        return DEFAULT_MODE


def lookup(mode, overrides: Optional[Mapping[str, Any]] = None) -> RegistryEntry:
    """Return the schema exemplar and prompt pair for ``mode``.

    ``mode`` may be a Mode or any raw value; unknown values resolve to lawyer.
    ``overrides`` is the ``modes`` section of the prompt override file, keyed by
    mode name, each with optional ``system`` and ``user`` strings.
    """
    resolved = mode if isinstance(mode, Mode) else resolve_mode(mode)
    base = PROMPTS[resolved]
    prompts = _apply_overrides(resolved, base, overrides or {})
    return RegistryEntry(mode=resolved, schema=SCHEMAS[resolved], prompts=prompts)


def _apply_overrides(mode: Mode, base: PromptPair, overrides: Mapping[str, Any]) -> PromptPair:
    entry = overrides.get(mode.value)
    if not isinstance(entry, Mapping):
        return base
    system = entry.get("system")
    user = entry.get("user")
    if not isinstance(system, str) or not system.strip():
        system = base.system
    if not isinstance(user, str) or "{schema}" not in user or "{text}" not in user:
        if user is not None:
            logger.warning("Prompt override for mode %s lacks {schema}/{text}; using built-in", mode.value)
        user = base.user
    return PromptPair(system=system, user=user)


def missing_top_level_keys(mode: Mode, payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        return []
    expected = json.loads(SCHEMAS[mode])
    return [key for key in expected if key not in payload]
