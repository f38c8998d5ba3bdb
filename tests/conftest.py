"""Pytest configuration and fixtures."""

import os

# Settings are cached on first use, so the test environment is fixed before
# the application is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BACKEND"] = "database"
os.environ["EXTRACTION_PROVIDER"] = "pypdf"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["ALLOW_CANNED_ANSWERS"] = "false"

from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from resume_qa import models_db  # noqa: E402,F401
from resume_qa.database import Base, SessionLocal, engine  # noqa: E402
from resume_qa.main import app  # noqa: E402
from resume_qa.services.ai import get_answer_service  # noqa: E402


def build_pdf(text: str | None) -> bytes:
    """
    Build a one-page PDF with a correct xref table.

    Args:
        text: Text drawn on the page in Helvetica, or None for a blank page.
    """
    stream = b"" if text is None else f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    pdf = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(pdf)
    pdf += b"xref\n0 %d\n" % (len(objects) + 1)
    pdf += b"0000000000 65535 f \n"
    for offset in offsets:
        pdf += b"%010d 00000 n \n" % offset
    pdf += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref_offset,
    )
    return bytes(pdf)


class FakeAnswerService:
    """Stands in for AnswerService and records every call."""

    def __init__(self, reply: str | Exception = "Jane has five years of Python experience."):
        self.reply = reply
        self.calls: list[tuple[str, str]] = []

    async def answer(self, resume_text: str, question: str) -> str:
        self.calls.append((resume_text, question))
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture(autouse=True)
def reset_db() -> Generator[None, None, None]:
    """Give every test an empty resume table."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Database session bound to the in-memory test database."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def fake_answers() -> Generator[FakeAnswerService, None, None]:
    """Replace the answer service with a recording fake."""
    service = FakeAnswerService()
    app.dependency_overrides[get_answer_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_answer_service, None)


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """A valid one-page resume PDF with a text layer."""
    return build_pdf("Jane Doe - Senior Python Engineer")


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """A valid PDF whose only page has no text."""
    return build_pdf(None)


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"
