# backend/stockpulse/services/rag_chat.py
"""Filing Q&A: ticker-filtered retrieval from the vector store, answered by ChatOpenAI."""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate

from stockpulse.core.config import settings
from stockpulse.logger import get_logger

log = get_logger(__name__)

CHAT_PROMPT = PromptTemplate.from_template(
    "Do not use markdown. If no specific year is mentioned in the question, assume it refers to "
    "the current year ({year}). Answer the following question about {ticker} based on the provided context:\n\n"
    "Context: {context}\n"
    "Question: {input}\n\n"
    "Answer: "
)


def default_llm():
    from langchain_openai import ChatOpenAI
    return ChatOpenAI(model=settings.OPENAI_CHAT_MODEL, temperature=0, api_key=settings.OPENAI_API_KEY)


class FilingChat:
    def __init__(
        self,
        vector_store: Callable[[], Any],
        llm_factory: Callable[[], Any] = default_llm,
        top_k: int = settings.CHAT_TOP_K,
    ):
        self._vector_store = vector_store
        self._llm_factory = llm_factory
        self._llm = None
        self.top_k = top_k

    @property
    def llm(self):
        if self._llm is None:
            self._llm = self._llm_factory()
        return self._llm

    async def retrieve(self, ticker: str, question: str):
        store = self._vector_store()
        return await asyncio.to_thread(
            store.similarity_search, question, k=self.top_k, filter={"symbol": ticker}
        )

    async def answer(self, ticker: str, question: str, year: Optional[int] = None) -> Dict[str, Any]:
        ticker = ticker.strip().upper()
        docs = await self.retrieve(ticker, question)
        log.info("chat %s: %d context chunks", ticker, len(docs))
        chain = CHAT_PROMPT | self.llm | StrOutputParser()
        content = await chain.ainvoke({
            "year": year or datetime.now().year,
            "ticker": ticker,
            "context": "\n\n".join(d.page_content for d in docs),
            "input": question,
        })
        sources: List[Dict[str, Any]] = [
            {"page_content": d.page_content, "metadata": dict(d.metadata or {})} for d in docs
        ]
        return {"content": content, "sources": sources}
