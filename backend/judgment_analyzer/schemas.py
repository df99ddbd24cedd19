from typing import Any, Literal, Optional
from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    mode: Optional[Any] = Field(None, description="Analysis mode: lawyer, corporate, media or public; anything else means lawyer")
    text: str = Field("", description="Plain-text judgment content, already extracted from the source document")


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class SoftFailure(BaseModel):
    ok: Literal[False] = False
    reason: str
    raw: Optional[str] = None


class HardFailure(BaseModel):
    ok: Literal[False] = False
    error: str
    status: int
    kind: str
