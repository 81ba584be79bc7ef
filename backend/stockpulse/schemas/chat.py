# backend/stockpulse/schemas/chat.py
from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import Field

from stockpulse.schemas.stocks import CamelModel


class ChatMessage(CamelModel):
    role: str = "user"
    content: str


class ChatIn(CamelModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    ticker: Optional[str] = None


class Source(CamelModel):
    page_content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ChatResponse(CamelModel):
    content: str
    sources: List[Source] = Field(default_factory=list)
