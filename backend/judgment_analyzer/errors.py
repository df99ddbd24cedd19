from typing import Any, Dict, Optional

MAX_ERROR_BODY_CHARS = 2000


class AnalyzerError(RuntimeError):
    """Hard failure of an analysis request, reported with an HTTP status."""

    kind = "ANALYZE_FAILED"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message, "status": self.status_code, "kind": self.kind}


class InvalidInput(AnalyzerError):
    kind = "INVALID_INPUT"
    status_code = 400


class MissingCredential(AnalyzerError):
    kind = "MISSING_CREDENTIAL"

    def __init__(self, message: str = "Missing XAI_API_KEY/OPENAI_API_KEY"):
        super().__init__(message)


class UpstreamHttpError(AnalyzerError):
    kind = "UPSTREAM_HTTP_ERROR"

    def __init__(self, status: int, body: Optional[str]):
        self.status = status
        self.body = (body or "")[:MAX_ERROR_BODY_CHARS]
        super().__init__(f"LLM backend returned HTTP {status}: {self.body}")


class UpstreamTimeout(AnalyzerError):
    kind = "UPSTREAM_TIMEOUT"


class NetworkError(AnalyzerError):
    kind = "NETWORK_ERROR"


class EmptyCompletion(AnalyzerError):
    kind = "EMPTY_COMPLETION"

    def __init__(self, message: str = "LLM backend returned an empty completion"):
        super().__init__(message)
