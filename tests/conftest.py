import io
import os

import pytest
from pypdf import PdfWriter

from study_buddy.models.ingest_models import RawExtraction

# Disable rate limiting for tests
os.environ["STUDY_BUDDY_NO_RATE_LIMIT"] = "true"
# Run without the API token guard unless a test patches it in
os.environ.pop("STUDY_BUDDY_API_TOKEN", None)
os.environ.pop("STUDY_BUDDY_DEBUG", None)


class FakeExtractor:
    """Extraction capability returning a canned result or raising."""

    def __init__(self, result: RawExtraction | None = None, error: Exception | None = None):
        self.result = result or RawExtraction()
        self.error = error
        self.calls: list[bytes] = []

    async def extract(self, data: bytes) -> RawExtraction:
        self.calls.append(data)
        if self.error is not None:
            raise self.error
        return self.result


def build_pdf(pages: int = 1, title: str | None = None, author: str | None = None) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    metadata = {}
    if title:
        metadata["/Title"] = title
    if author:
        metadata["/Author"] = author
    if metadata:
        writer.add_metadata(metadata)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


@pytest.fixture
def pdf_bytes() -> bytes:
    return build_pdf(pages=2, title="Cell Biology", author="A. Student")


@pytest.fixture
def fake_extractor_factory():
    return FakeExtractor


@pytest.fixture
def pdf_factory():
    return build_pdf
