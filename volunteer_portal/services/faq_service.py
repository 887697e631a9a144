"""
FAQ chat: retrieval over embedded FAQ chunks plus a chat completion
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

import numpy as np
from openai import AsyncOpenAI
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from volunteer_portal.core.config import settings
from volunteer_portal.models import FaqChunk, Profile
from volunteer_portal.services.errors import ServiceError, ValidationFailed
from volunteer_portal.services.repositories import ChatLogRepo, FaqRepo

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You answer questions using only the following context from the FAQ document. "
    "If the answer is not in the context, say \"I don't have that information in the FAQ.\" "
    "Do not make up details. Keep answers concise."
)

NO_CONTEXT = "No relevant FAQ content found."
NO_ANSWER = "I couldn't generate an answer."

VECTOR_MATCH_COUNT = 10
KEYWORD_MATCH_COUNT = 5
CHUNK_SIZE = 600
CHUNK_OVERLAP = 100

# Questions about clothing should also find the "attire" section
_ATTIRE_HINTS = ("dress", "wear", "clothes")


class ChatNotConfigured(ServiceError):
    status_code = 500


def serialize_embedding(vec: np.ndarray) -> bytes:
    if vec.dtype != np.float32:
        vec = vec.astype(np.float32)
    return vec.tobytes()


def deserialize_embedding(data: bytes) -> np.ndarray:
    return np.frombuffer(data, dtype=np.float32)


def _normalize(vec: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vec)
    if norm == 0:
        return vec
    return vec / norm


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> List[str]:
    """Collapse whitespace and cut the text into overlapping windows."""
    cleaned = re.sub(r"\s+", " ", text or "").strip()
    chunks = []
    start = 0
    while start < len(cleaned):
        end = min(start + chunk_size, len(cleaned))
        chunks.append(cleaned[start:end])
        if end >= len(cleaned):
            break
        start += chunk_size - overlap
    return [c for c in chunks if c]


def extract_pdf_text(data: bytes) -> str:
    """Text of every page of a PDF, pages separated by newlines."""
    try:
        reader = PdfReader(io.BytesIO(data))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except PdfReadError as e:
        raise ValidationFailed(f"Could not read PDF: {e}")


def load_faq_text(path: Union[str, Path]) -> str:
    """Read the FAQ document; PDFs are run through the text extractor, anything else is read as UTF-8."""
    path = Path(path)
    if path.suffix.lower() == ".pdf":
        text = extract_pdf_text(path.read_bytes())
    else:
        text = path.read_text(encoding="utf-8")
    if not text.strip():
        raise ValidationFailed(f"No text extracted from {path.name}.")
    return text


def extract_keywords(message: str) -> List[str]:
    lower = message.lower()
    keywords = [w for w in lower.split() if len(w) > 2][:5]
    if any(hint in lower for hint in _ATTIRE_HINTS):
        keywords.append("attire")
    # de-duplicate, keep order
    return list(dict.fromkeys(keywords))


def _client() -> AsyncOpenAI:
    kwargs = {"api_key": settings.OPENAI_API_KEY}
    if settings.OPENAI_BASE_URL:
        kwargs["base_url"] = settings.OPENAI_BASE_URL
    return AsyncOpenAI(**kwargs)


class FaqService:
    """Embeds questions, retrieves FAQ context and asks the chat model.

    ``client`` is any object shaped like ``openai.AsyncOpenAI``.
    """

    def __init__(self, client=None):
        self.client = client

    def _get_client(self):
        if self.client is None:
            if not settings.OPENAI_API_KEY:
                raise ChatNotConfigured("Chat is not configured.")
            self.client = _client()
        return self.client

    async def embed(self, texts: Iterable[str]) -> np.ndarray:
        response = await self._get_client().embeddings.create(
            model=settings.EMBEDDING_MODEL,
            input=list(texts),
        )
        ordered = sorted(response.data, key=lambda item: item.index)
        vectors = np.array([item.embedding for item in ordered], dtype=np.float32)
        return np.vstack([_normalize(v) for v in vectors])

    async def ingest(self, db: Session, text: str) -> int:
        """Replace all stored FAQ chunks with chunks of ``text``."""
        chunks = chunk_text(text)
        if not chunks:
            raise ValidationFailed("No text to ingest.")
        vectors = await self.embed(chunks)
        rows = [
            FaqChunk(chunk_index=i, content=content, embedding=serialize_embedding(vectors[i]))
            for i, content in enumerate(chunks)
        ]
        count = FaqRepo.replace_chunks(db, rows)
        logger.info("Ingested %s FAQ chunks", count)
        return count

    @staticmethod
    def nearest_chunks(db: Session, query_vec: np.ndarray, limit: int = VECTOR_MATCH_COUNT) -> List[FaqChunk]:
        query_vec = _normalize(query_vec.astype(np.float32))
        scored = []
        for chunk in FaqRepo.all_chunks(db):
            emb = deserialize_embedding(chunk.embedding)
            if emb.shape != query_vec.shape:
                continue
            scored.append((float(np.dot(emb, query_vec)), chunk))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [chunk for _, chunk in scored[:limit]]

    async def retrieve(self, db: Session, message: str) -> List[FaqChunk]:
        """Vector matches first, then keyword matches not already included."""
        query_vec = (await self.embed([message]))[0]
        chunks = self.nearest_chunks(db, query_vec)

        seen = {c.id for c in chunks}
        for chunk in FaqRepo.keyword_chunks(db, extract_keywords(message), KEYWORD_MATCH_COUNT):
            if chunk.id not in seen:
                seen.add(chunk.id)
                chunks.append(chunk)
        return chunks

    async def answer(self, db: Session, user: Profile, message: Optional[str],
                     session_id: Optional[str] = None) -> str:
        message = (message or "").strip() if isinstance(message, str) else ""
        if not message:
            raise ServiceError("message is required")

        chunks = await self.retrieve(db, message)
        context = "\n\n".join(c.content or "" for c in chunks) if chunks else NO_CONTEXT

        completion = await self._get_client().chat.completions.create(
            model=settings.CHAT_MODEL,
            messages=[
                {"role": "system", "content": f"{SYSTEM_PROMPT}\n\nContext:\n{context}"},
                {"role": "user", "content": message},
            ],
            max_tokens=settings.CHAT_MAX_TOKENS,
        )
        content = completion.choices[0].message.content if completion.choices else None
        reply = (content or "").strip() or NO_ANSWER

        try:
            ChatLogRepo.add_exchange(db, user.id, message, reply, session_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Chat log insert failed: %s", e)

        return reply
