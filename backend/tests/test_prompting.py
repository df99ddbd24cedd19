import logging

from judgment_analyzer.prompting import (
    REPAIR_SYSTEM_PROMPT,
    TRUNCATION_MARKER,
    build_messages,
    build_repair_messages,
    truncate_text,
)
from judgment_analyzer.registry import Mode, SCHEMAS, lookup

JUDGMENT = "【案号】(2024)沪0115民初12345号 原告甲公司诉被告乙公司服务合同纠纷，判决被告支付服务费90万元。"


def test_messages_are_system_then_user_with_schema_and_text():
    messages = build_messages("lawyer", JUDGMENT, max_chars=1000)
    assert [m.role for m in messages] == ["system", "user"]
    assert messages[0].content == lookup(Mode.LAWYER).prompts.system
    assert SCHEMAS[Mode.LAWYER] in messages[1].content
    assert JUDGMENT in messages[1].content
    assert TRUNCATION_MARKER not in messages[1].content


def test_unknown_mode_builds_lawyer_prompt():
    messages = build_messages("astrologer", JUDGMENT, max_chars=1000)
    assert SCHEMAS[Mode.LAWYER] in messages[1].content


def test_text_with_braces_is_embedded_verbatim():
    text = "The clause reads {text} and {schema} literally."
    messages = build_messages("public", text, max_chars=1000)
    assert text in messages[1].content
    assert SCHEMAS[Mode.PUBLIC] in messages[1].content


def test_truncate_text_bounds_length():
    text = "x" * 500
    truncated, cut = truncate_text(text, 120)
    assert cut
    assert truncated.endswith(TRUNCATION_MARKER)
    assert len(truncated) == 120 + len(TRUNCATION_MARKER)

    same, cut = truncate_text("short", 120)
    assert same == "short" and not cut


def test_long_text_is_truncated_in_user_message():
    text = "判" * 5000
    messages = build_messages("media", text, max_chars=300)
    user = messages[1].content
    assert TRUNCATION_MARKER in user
    assert "判" * 300 in user
    assert "判" * 301 not in user


def test_prompt_overrides_from_settings_file_are_applied():
    prompts = {"modes": {"public": {"system": "Explain like a court clerk."}}}
    messages = build_messages("public", JUDGMENT, max_chars=1000, prompts=prompts)
    assert messages[0].content == "Explain like a court clerk."


def test_repair_messages_embed_bounded_original_completion():
    raw = "Sure, here's the analysis: " + "a" * 200
    messages = build_repair_messages(raw, max_chars=50)
    assert [m.role for m in messages] == ["system", "user"]
    assert messages[0].content == REPAIR_SYSTEM_PROMPT
    assert raw[:50] in messages[1].content
    assert raw[:51] not in messages[1].content


def test_repair_prompt_override_requires_raw_placeholder():
    prompts = {"repair": {"system": "Fix JSON.", "user": "no placeholder"}}
    messages = build_repair_messages("{broken", max_chars=50, prompts=prompts)
    assert messages[0].content == "Fix JSON."
    assert "{broken" in messages[1].content


def test_truncation_is_logged_once_by_the_builder(caplog):
    with caplog.at_level(logging.INFO, logger="judgment_analyzer.prompting"):
        build_messages("lawyer", "x" * 500, max_chars=100)
        build_messages("lawyer", "x" * 50, max_chars=100)
    records = [r for r in caplog.records if r.name == "judgment_analyzer.prompting"]
    assert len(records) == 1
    assert "500" in records[0].getMessage()
