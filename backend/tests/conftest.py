import sys
import types
import pathlib
from dataclasses import replace

import pytest

BASE_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from judgment_analyzer.config import Settings  # noqa: E402
import judgment_analyzer.services.completion as completion  # noqa: E402


BASE_SETTINGS = Settings(
    api_key="xai-test-key-123456",
    base_url="https://llm.test/v1",
    model="grok-test",
    max_tokens=None,
    temperature=0.2,
    timeout_seconds=5.0,
    proxy_url=None,
    proxy_fallback_direct=False,
    max_text_chars=200,
    min_text_chars=10,
    max_repair_chars=100,
    max_raw_chars=50,
    cors_allow_origins=["*"],
    log_level="INFO",
    prompts={},
)


def make_settings(**overrides) -> Settings:
    return replace(BASE_SETTINGS, **overrides)


def completion_response(content):
    return types.SimpleNamespace(
        choices=[types.SimpleNamespace(message=types.SimpleNamespace(content=content))]
    )


class FakeBackend:
    """Stands in for ``AsyncOpenAI``: every client it builds shares one reply script."""

    def __init__(self):
        self.replies = []
        self.calls = []
        self.client_kwargs = []
        self.models_reply = None
        self.closed = 0

    def script(self, *replies):
        self.replies.extend(replies)
        return self

    def __call__(self, **kwargs):
        self.client_kwargs.append(kwargs)
        backend = self
        http_client = kwargs.get("http_client")

        async def create(**payload):
            backend.calls.append({"client": len(backend.client_kwargs) - 1, **payload})
            reply = backend.replies.pop(0)
            if isinstance(reply, BaseException):
                raise reply
            if callable(reply):
                return await reply()
            return completion_response(reply)

        async def list_models():
            if isinstance(backend.models_reply, BaseException):
                raise backend.models_reply
            return types.SimpleNamespace(data=[])

        async def close():
            backend.closed += 1
            if http_client is not None:
                await http_client.aclose()

        return types.SimpleNamespace(
            chat=types.SimpleNamespace(completions=types.SimpleNamespace(create=create)),
            models=types.SimpleNamespace(list=list_models),
            close=close,
        )


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(completion, "AsyncOpenAI", fake)
    return fake


@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch):
    monkeypatch.setenv("DOTENV_DISABLED", "1")
