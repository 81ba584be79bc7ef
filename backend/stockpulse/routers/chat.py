# backend/stockpulse/routers/chat.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from stockpulse.api.deps import get_chat
from stockpulse.logger import get_logger
from stockpulse.schemas.chat import ChatIn, ChatResponse
from stockpulse.services.errors import StockPulseError
from stockpulse.services.rag_chat import FilingChat

log = get_logger(__name__)

router = APIRouter(tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat(payload: ChatIn, service: FilingChat = Depends(get_chat)):
    """Answer the latest message from the selected ticker's filings."""
    ticker = (payload.ticker or "").strip()
    if not ticker:
        return JSONResponse(status_code=400, content={"error": "Please select a ticker to analyze"})
    if not payload.messages:
        return JSONResponse(status_code=400, content={"error": "Messages are required"})

    question = payload.messages[-1].content
    try:
        result = await service.answer(ticker, question)
    except StockPulseError as e:
        log.error("chat failed for %s: %s", ticker, e)
        return JSONResponse(status_code=500, content={"error": str(e)})
    except Exception:
        log.exception("chat failed for %s", ticker)
        return JSONResponse(status_code=500, content={"error": "Failed to process chat request"})
    return ChatResponse.model_validate(result)
