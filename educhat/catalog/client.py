"""HTTP client for the major/year/course listings."""
from __future__ import annotations

import logging
from typing import TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from ..exceptions import CatalogError
from .schemas import CoursesResponse, MajorsResponse, YearsResponse

LOGGER = logging.getLogger(__name__)

_ResponseT = TypeVar("_ResponseT", bound=BaseModel)


def _segment(value: str) -> str:
    return quote(value, safe="")


class CatalogClient:
    """Fetch catalog listings, caching every answer for the client's lifetime.

    Failed fetches are logged and cached as empty listings, so a broken level
    of the cascade is not requested again.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._cache: dict[str, list[str]] = {}

    async def list_majors(self) -> list[str]:
        return await self._cached("/major", MajorsResponse, "majors")

    async def list_years(self, major: str) -> list[str]:
        return await self._cached(f"/year/{_segment(major)}", YearsResponse, "years")

    async def list_courses(self, major: str, year: str) -> list[str]:
        return await self._cached(f"/course/{_segment(major)}/{_segment(year)}", CoursesResponse, "courses")

    async def _cached(self, path: str, schema: type[_ResponseT], field: str) -> list[str]:
        if path in self._cache:
            return list(self._cache[path])
        try:
            payload = await self._fetch(path, schema)
            values = list(getattr(payload, field))
        except CatalogError as exc:
            LOGGER.error("Catalog fetch failed | path=%s status=%s error=%s", path, exc.status, exc)
            values = []
        else:
            LOGGER.info("Catalog fetched | path=%s entries=%d", path, len(values))
        self._cache[path] = values
        return list(values)

    async def _fetch(self, path: str, schema: type[_ResponseT]) -> _ResponseT:
        try:
            response = await self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CatalogError(
                f"Catalog request {path} failed with status {exc.response.status_code}",
                status=exc.response.status_code,
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise CatalogError(f"Failed to reach catalog endpoint {path}: {exc}", cause=exc) from exc
        try:
            return schema.model_validate_json(response.content)
        except ValidationError as exc:
            raise CatalogError(f"Unexpected catalog payload for {path}", status=response.status_code, cause=exc) from exc


__all__ = ["CatalogClient"]
