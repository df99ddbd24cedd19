import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from .config import Settings, load_settings
from .errors import InvalidInput
from .routes.analyze import router as analyze_router
from .routes.health import router as health_router
from .services.completion import CompletionClient
from .utils import setup_logging


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    # Load environment variables from .env if present
    if os.getenv("DOTENV_DISABLED", "false").lower() not in {"1", "true", "yes"}:
        load_dotenv()

    settings = settings or load_settings()
    logger = setup_logging(settings.log_level)
    completion_client = CompletionClient(settings)
    if not settings.api_key:
        logger.warning("No XAI_API_KEY/OPENAI_API_KEY configured; analysis requests will fail")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await completion_client.aclose()

    app = FastAPI(title="Judgment Analyzer API", version="0.3.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.completion_client = completion_client

    # CORS
    cors_origins = settings.cors_allow_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError):
        details = "; ".join(str(err.get("msg", "")) for err in exc.errors()[:3])
        error = InvalidInput(f"invalid request: {details}" if details else "invalid request")
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    # Routers
    app.include_router(health_router, prefix="/api")
    app.include_router(analyze_router, prefix="/api")
    app.include_router(analyze_router)

    return app
