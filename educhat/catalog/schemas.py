"""Schemas for the catalog listing endpoints."""
from __future__ import annotations

from pydantic import BaseModel, Field


class MajorsResponse(BaseModel):
    majors: list[str] = Field(default_factory=list)


class YearsResponse(BaseModel):
    years: list[str] = Field(default_factory=list)


class CoursesResponse(BaseModel):
    courses: list[str] = Field(default_factory=list)


class CatalogOption(BaseModel):
    """One selectable entry of the cascade."""

    id: str
    name: str
    description: str = ""


__all__ = ["MajorsResponse", "YearsResponse", "CoursesResponse", "CatalogOption"]
