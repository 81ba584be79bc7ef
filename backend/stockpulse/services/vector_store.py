# backend/stockpulse/services/vector_store.py
from __future__ import annotations

from functools import lru_cache

from stockpulse.core.config import settings
from stockpulse.logger import get_logger
from stockpulse.services.errors import VectorStoreNotConfiguredError

log = get_logger(__name__)


def ensure_configured() -> None:
    missing = [
        name for name in ("OPENAI_API_KEY", "PINECONE_API_KEY", "PINECONE_INDEX")
        if not getattr(settings, name)
    ]
    if missing:
        raise VectorStoreNotConfiguredError(f"Missing configuration: {', '.join(missing)}")


@lru_cache(maxsize=1)
def get_vector_store():
    """Pinecone index wrapped as a LangChain vector store (OpenAI embeddings)."""
    ensure_configured()
    from pinecone import Pinecone
    from langchain_openai import OpenAIEmbeddings
    from langchain_pinecone import PineconeVectorStore

    index = Pinecone(api_key=settings.PINECONE_API_KEY).Index(settings.PINECONE_INDEX)
    embeddings = OpenAIEmbeddings(model=settings.OPENAI_EMBEDDING_MODEL, api_key=settings.OPENAI_API_KEY)
    log.info("vector store ready: index=%s embeddings=%s", settings.PINECONE_INDEX, settings.OPENAI_EMBEDDING_MODEL)
    return PineconeVectorStore(index=index, embedding=embeddings)
