"""
Budtender chat over Server-Sent Events.

    data: {"content": "<chunk>"}\\n\\n    one per model chunk
    data: [DONE]\\n\\n                  end of reply
    data: {"error": "..."}\\n\\n        generation failed mid-stream
"""
import json
import logging
from typing import Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session

from budtender.chain import stream_response
from greenleaf.api.deps import get_db
from greenleaf.core.rate_limiter import strict_rate_limiter, limit_with
from greenleaf.schemas.chat import ChatRequest

router = APIRouter()
logger = logging.getLogger(__name__)

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _sse(data) -> str:
    return f"data: {data if isinstance(data, str) else json.dumps(data)}\n\n"


def _event_stream(chunks: Iterator[str]) -> Iterator[str]:
    try:
        for chunk in chunks:
            yield _sse({"content": chunk})
        yield _sse("[DONE]")
    except Exception:
        # Headers are already sent; the client can only learn of it in-band
        logger.exception("Budtender stream failed")
        yield _sse({"error": "Failed to generate response"})


@router.post("", dependencies=[Depends(limit_with(strict_rate_limiter))])
def chat(payload: ChatRequest, db: Session = Depends(get_db)):
    message = (payload.message or "").strip()
    if not message:
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    history = [turn.model_dump() for turn in payload.history]
    chunks = stream_response(db, message, history)
    return StreamingResponse(_event_stream(chunks), media_type="text/event-stream", headers=SSE_HEADERS)
