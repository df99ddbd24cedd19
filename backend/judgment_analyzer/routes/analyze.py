import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..errors import AnalyzerError
from ..schemas import AnalyzeRequest, HardFailure
from ..services.analysis import analyze
from ..utils import ClientDisconnected, run_until_disconnected

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analyze")
async def analyze_judgment(payload: AnalyzeRequest, request: Request):
    settings = request.app.state.settings
    client = request.app.state.completion_client
    try:
        outcome = await run_until_disconnected(
            request,
            analyze(payload.mode, payload.text, client=client, settings=settings),
        )
        return JSONResponse(content=outcome.payload)
    except AnalyzerError as exc:
        logger.warning("Analysis failed (%s, HTTP %d): %s", exc.kind, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())
    except ClientDisconnected:
        logger.info("Client disconnected; analysis cancelled")
        failure = HardFailure(error="client_disconnected", status=499, kind="CLIENT_DISCONNECTED")
        return JSONResponse(status_code=499, content=failure.model_dump())
    except Exception:
        logger.exception("Unexpected error during analysis")
        failure = HardFailure(error="analyze_failed", status=500, kind="INTERNAL_ERROR")
        return JSONResponse(status_code=500, content=failure.model_dump())
