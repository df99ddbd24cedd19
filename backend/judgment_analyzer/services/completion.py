"""Single-attempt chat-completion client for the OpenAI-compatible backend.

One ``CompletionClient`` is shared by all requests of an application so that
its HTTP connection pool is reused. Each ``complete`` call issues exactly one
POST to ``{base_url}/chat/completions`` (a second, direct one only when the
proxy fails and ``LLM_PROXY_FALLBACK_DIRECT`` is on). Retrying on malformed
output is the analysis controller's job, not this module's.
"""
import asyncio
import logging
import time
from typing import Any, Dict, Optional, Sequence

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from ..config import Settings
from ..errors import EmptyCompletion, MissingCredential, NetworkError, UpstreamHttpError, UpstreamTimeout
from ..schemas import ChatMessage

logger = logging.getLogger(__name__)


class CompletionClient:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: Optional[AsyncOpenAI] = None
        self._direct_client: Optional[AsyncOpenAI] = None

    def _build_client(self, *, use_proxy: bool) -> AsyncOpenAI:
        if use_proxy and self.settings.proxy_url:
            http_client = httpx.AsyncClient(proxy=self.settings.proxy_url, trust_env=False)
        else:
            http_client = httpx.AsyncClient(trust_env=False)
        return AsyncOpenAI(
            api_key=self.settings.api_key,
            base_url=self.settings.base_url,
            timeout=self.settings.timeout_seconds,
            max_retries=0,
            http_client=http_client,
        )

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = self._build_client(use_proxy=True)
        return self._client

    def _get_direct_client(self) -> AsyncOpenAI:
        if self._direct_client is None:
            self._direct_client = self._build_client(use_proxy=False)
        return self._direct_client

    def build_payload(self, messages: Sequence[ChatMessage], *, model: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model or self.settings.model,
            "temperature": self.settings.temperature,
            "messages": [m.model_dump() for m in messages],
        }
        if self.settings.max_tokens:
            payload["max_tokens"] = self.settings.max_tokens
        return payload

    async def complete(self, messages: Sequence[ChatMessage], *, model: Optional[str] = None, attempt: str = "initial") -> str:
        if not self.settings.api_key:
            raise MissingCredential()
        payload = self.build_payload(messages, model=model)
        started = time.monotonic()
        # The proxied attempt and any direct fallback share one deadline.
        deadline = started + self.settings.timeout_seconds
        try:
            response = await self._send(self._get_client(), payload, deadline)
        except NetworkError:
            if not (self.settings.proxy_url and self.settings.proxy_fallback_direct):
                raise
            logger.warning("Proxy connection failed for %s completion; retrying without proxy", attempt)
            response = await self._send(self._get_direct_client(), payload, deadline)
        logger.info("Completion %s from %s took %.2fs", attempt, payload["model"], time.monotonic() - started)
        return _extract_content(response)

    async def _send(self, client: AsyncOpenAI, payload: Dict[str, Any], deadline: float):
        timeout = self.settings.timeout_seconds
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise UpstreamTimeout(f"LLM request timed out after {timeout:g}s")
        try:
            return await asyncio.wait_for(client.chat.completions.create(**payload), timeout=remaining)
        except (asyncio.TimeoutError, APITimeoutError) as exc:
            raise UpstreamTimeout(f"LLM request timed out after {timeout:g}s") from exc
        except APIStatusError as exc:
            raise UpstreamHttpError(exc.status_code, _error_body(exc)) from exc
        except APIConnectionError as exc:
            raise NetworkError(f"Could not reach LLM backend at {self.settings.base_url}: {exc}") from exc

    async def probe(self) -> str:
        """Check that the backend answers a model listing with our key."""
        if not self.settings.api_key:
            return "skipped"
        try:
            await asyncio.wait_for(self._get_client().models.list(), timeout=self.settings.timeout_seconds)
        except APIStatusError:
            return "api_error"
        except (asyncio.TimeoutError, APIConnectionError):
            return "failed"
        return "connected"

    async def aclose(self) -> None:
        for client in (self._client, self._direct_client):
            if client is not None:
                await client.close()
        self._client = None
        self._direct_client = None


def _error_body(exc: APIStatusError) -> str:
    response = getattr(exc, "response", None)
    text = getattr(response, "text", None)
    return text if isinstance(text, str) and text else str(exc.message)


def _extract_content(response) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        content = None
    if not isinstance(content, str) or not content.strip():
        raise EmptyCompletion()
    return content
