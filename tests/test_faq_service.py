"""
Tests for FAQ chunking, retrieval and chat logging
"""

import asyncio
from types import SimpleNamespace

import numpy as np
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from volunteer_portal.core.db import Base
from volunteer_portal.models import ChatLog, FaqChunk, Profile
from volunteer_portal.services.errors import ServiceError, ValidationFailed
from volunteer_portal.services.faq_service import (
    NO_ANSWER,
    NO_CONTEXT,
    FaqService,
    chunk_text,
    deserialize_embedding,
    extract_keywords,
    extract_pdf_text,
    load_faq_text,
    serialize_embedding,
)

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_faq.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Topic axes for the fake embedding model
TOPICS = ("parking", "attire", "hotel")


def fake_vector(text):
    lower = text.lower()
    return [1.0 if topic in lower else 0.0 for topic in TOPICS] + [0.1]


class FakeEmbeddings:
    def __init__(self):
        self.calls = []

    async def create(self, model, input):
        self.calls.append(list(input))
        # Return out of order; callers must sort by index
        data = [SimpleNamespace(index=i, embedding=fake_vector(t)) for i, t in enumerate(input)]
        return SimpleNamespace(data=list(reversed(data)))


class FakeCompletions:
    def __init__(self, reply):
        self.reply = reply
        self.messages = None

    async def create(self, model, messages, max_tokens):
        self.messages = messages
        choice = SimpleNamespace(message=SimpleNamespace(content=self.reply))
        return SimpleNamespace(choices=[choice])


class FakeOpenAI:
    def __init__(self, reply="Park in lot B."):
        self.embeddings = FakeEmbeddings()
        self.chat = SimpleNamespace(completions=FakeCompletions(reply))


@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def volunteer(db_session):
    profile = Profile(display_name="Sam", api_token="sam-token")
    db_session.add(profile)
    db_session.commit()
    return profile

@pytest.fixture
def faq_text():
    return (
        "Parking: volunteers park in lot B behind the hangar. "
        "Attire: wear the volunteer polo and closed-toe shoes. "
        "Hotel: the room block closes two weeks before the event."
    )

def test_chunk_text_overlaps_windows():
    text = "a" * 1300
    chunks = chunk_text(text)

    assert [len(c) for c in chunks] == [600, 600, 300]
    assert chunk_text(text)[1] == text[500:1100]

def test_chunk_text_collapses_whitespace():
    assert chunk_text("  Where\n\n do   I park?  ") == ["Where do I park?"]
    assert chunk_text("   ") == []

def test_extract_keywords():
    assert extract_keywords("What should I wear on Saturday?") == ["what", "should", "wear", "saturday?", "attire"]
    assert extract_keywords("Is it ok") == []

def test_embedding_bytes_round_trip():
    vec = np.array([0.5, 0.25, 0.0], dtype=np.float64)
    restored = deserialize_embedding(serialize_embedding(vec))

    assert restored.dtype == np.float32
    assert restored.tolist() == [0.5, 0.25, 0.0]

def test_ingest_replaces_chunks(db_session, faq_text):
    service = FaqService(client=FakeOpenAI())

    assert asyncio.run(service.ingest(db_session, faq_text)) == 1
    assert asyncio.run(service.ingest(db_session, "Parking is free.")) == 1

    chunks = db_session.query(FaqChunk).all()
    assert [c.content for c in chunks] == ["Parking is free."]

def test_retrieve_ranks_by_similarity(db_session):
    service = FaqService(client=FakeOpenAI())
    rows = []
    for i, content in enumerate(["Hotel room block details", "Parking in lot B", "Attire is the polo"]):
        vec = service_embed(service, content)
        rows.append(FaqChunk(chunk_index=i, content=content, embedding=serialize_embedding(vec)))
    db_session.add_all(rows)
    db_session.commit()

    chunks = asyncio.run(service.retrieve(db_session, "Where is parking?"))

    assert chunks[0].content == "Parking in lot B"
    assert len(chunks) == 3

def service_embed(service, text):
    return asyncio.run(service.embed([text]))[0]

def test_answer_sends_context_and_logs_exchange(db_session, volunteer, faq_text):
    client = FakeOpenAI(reply="  Park in lot B behind the hangar.  ")
    service = FaqService(client=client)
    asyncio.run(service.ingest(db_session, faq_text))

    reply = asyncio.run(service.answer(db_session, volunteer, "Where do I park?"))

    assert reply == "Park in lot B behind the hangar."
    system = client.chat.completions.messages[0]
    assert system["role"] == "system"
    assert "lot B" in system["content"]
    assert client.chat.completions.messages[1] == {"role": "user", "content": "Where do I park?"}

    log = db_session.query(ChatLog).order_by(ChatLog.id).all()
    assert [(row.role, row.content) for row in log] == [
        ("user", "Where do I park?"),
        ("assistant", "Park in lot B behind the hangar."),
    ]
    assert all(row.user_id == volunteer.id for row in log)

def test_answer_without_faq_content(db_session, volunteer):
    client = FakeOpenAI(reply="")
    service = FaqService(client=client)

    reply = asyncio.run(service.answer(db_session, volunteer, "Anything?"))

    assert reply == NO_ANSWER
    assert NO_CONTEXT in client.chat.completions.messages[0]["content"]

def test_answer_requires_message(db_session, volunteer):
    service = FaqService(client=FakeOpenAI())

    with pytest.raises(ServiceError) as exc:
        asyncio.run(service.answer(db_session, volunteer, "   "))

    assert exc.value.message == "message is required"
    assert db_session.query(ChatLog).count() == 0

def make_pdf(text):
    """Single-page PDF showing ``text`` in Helvetica"""
    content = b"BT /F1 12 Tf 72 720 Td (" + text.encode("latin-1") + b") Tj ET"
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)

def test_extract_pdf_text():
    text = extract_pdf_text(make_pdf("Volunteers park in lot B behind the hangar."))

    assert "park in lot B" in text

def test_load_faq_text_reads_pdf_and_text(tmp_path):
    pdf = tmp_path / "faq.pdf"
    pdf.write_bytes(make_pdf("Attire: wear the volunteer polo."))
    notes = tmp_path / "faq.md"
    notes.write_text("Hotel: the room block closes early.", encoding="utf-8")

    assert "volunteer polo" in load_faq_text(pdf)
    assert load_faq_text(notes) == "Hotel: the room block closes early."

def test_load_faq_text_rejects_empty_file(tmp_path):
    empty = tmp_path / "faq.txt"
    empty.write_text("   \n", encoding="utf-8")

    with pytest.raises(ValidationFailed):
        load_faq_text(empty)

def test_ingest_from_pdf(db_session, tmp_path):
    pdf = tmp_path / "faq.pdf"
    pdf.write_bytes(make_pdf("Parking: volunteers park in lot B behind the hangar."))
    service = FaqService(client=FakeOpenAI())

    assert asyncio.run(service.ingest(db_session, load_faq_text(pdf))) == 1

    chunk = db_session.query(FaqChunk).one()
    assert "lot B" in chunk.content
