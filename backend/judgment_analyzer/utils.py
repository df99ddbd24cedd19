import asyncio
import logging
from typing import Awaitable, Optional, TypeVar
from urllib.parse import urlsplit, urlunsplit

from starlette.requests import Request

T = TypeVar("T")


class ClientDisconnected(Exception):
    pass


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # SDK request logs would echo URLs for every call
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    return logging.getLogger("judgment_analyzer")


async def run_until_disconnected(request: Request, awaitable: Awaitable[T], *, poll_interval: float = 0.5) -> T:
    """Await ``awaitable`` but cancel it if the HTTP client goes away first."""
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


def mask_secret(value: Optional[str], visible: int = 7) -> str:
    if not value:
        return "none"
    return value[:visible] + "..."


def redact_url(url: str) -> str:
    parts = urlsplit(url)
    if parts.password is None and parts.username is None:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, f"***@{host}", parts.path, parts.query, parts.fragment))
