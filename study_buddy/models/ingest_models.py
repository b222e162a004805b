"""Pydantic models for document uploads, extraction and outlines."""

from __future__ import annotations

from pydantic import BaseModel, Field

from study_buddy.models.mindmap_models import MindMapStructure


class UploadedDocument(BaseModel):
    """An upload held in memory for the duration of one request."""

    content: bytes = b""
    media_type: str = ""
    filename: str = ""
    byte_size: int = 0

    @property
    def head(self) -> bytes:
        return self.content[:5]


class RawExtraction(BaseModel):
    """What an extraction capability hands back before normalization."""

    text: str = ""
    page_count: int = 0
    info: dict[str, str | None] = Field(default_factory=dict)


class DocumentMetadata(BaseModel):
    title: str
    author: str = "Unknown"
    creation_date: str | None = None
    page_count: int = 0
    word_count: int = 0


class ExtractionResult(BaseModel):
    text: str
    page_count: int = Field(default=0, ge=0)
    word_count: int = Field(default=0, ge=0)
    metadata: DocumentMetadata


class OutlineLine(BaseModel):
    original: str
    text: str
    level: int = Field(ge=0)


class PdfUploadResponse(BaseModel):
    success: bool = True
    filename: str
    page_count: int
    word_count: int
    text_content: str
    metadata: DocumentMetadata


class PdfInspectResponse(BaseModel):
    success: bool = True
    filename: str
    size: int
    version: str
    type: str


class OutlineResponse(BaseModel):
    success: bool = True
    lines: list[OutlineLine]
    levels: dict[int, list[OutlineLine]]
    main_topics: list[OutlineLine]
    structure: MindMapStructure
    metadata: DocumentMetadata | None = None


class PdfQueryRequest(BaseModel):
    query: str = ""
    pdf_text: str = ""
    filename: str | None = None


class PdfQueryResponse(BaseModel):
    success: bool = True
    query: str
    answer: str
