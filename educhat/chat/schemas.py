"""Wire schemas for the chat endpoints."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .models import Citation


class CitationSchema(BaseModel):
    title: str
    document: str
    page: int | str

    def to_citation(self) -> Citation:
        return Citation(title=self.title, document=self.document, page=self.page)


class QuestionRequest(BaseModel):
    query: str
    major: str
    year: str
    course: str


class QuestionResponse(BaseModel):
    answer: Optional[str] = ""
    sources: Optional[list[CitationSchema]] = Field(default=None, description="Cited passages, when provided")

    def citations(self) -> tuple[Citation, ...] | None:
        if self.sources is None:
            return None
        return tuple(source.to_citation() for source in self.sources)


__all__ = ["CitationSchema", "QuestionRequest", "QuestionResponse"]
