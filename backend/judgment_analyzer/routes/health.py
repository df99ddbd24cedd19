from datetime import datetime, timezone

from fastapi import APIRouter, Request

from ..utils import mask_secret, redact_url

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/diagnostics")
async def diagnostics(request: Request, probe: bool = True):
    settings = request.app.state.settings
    client = request.app.state.completion_client
    network_test = await client.probe() if probe else "skipped"
    return {
        "status": "ok",
        "hasApiKey": bool(settings.api_key),
        "apiKeyLength": len(settings.api_key) if settings.api_key else 0,
        "apiKeyPrefix": mask_secret(settings.api_key),
        "model": settings.model,
        "baseUrl": settings.base_url,
        "proxy": redact_url(settings.proxy_url) if settings.proxy_url else "not_set",
        "proxyFallbackDirect": settings.proxy_fallback_direct,
        "networkTest": network_test,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
