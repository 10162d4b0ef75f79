"""Three-level cascade resolving a major, a year and a course."""
from __future__ import annotations

import logging
from enum import Enum

from ..chat.models import AcademicContext
from .client import CatalogClient
from .schemas import CatalogOption

LOGGER = logging.getLogger(__name__)

YEAR_LABEL_TEMPLATE = "Année {year}"


class SelectionStep(str, Enum):
    MAJOR = "major"
    YEAR = "year"
    COURSE = "course"


_PREVIOUS_STEP = {
    SelectionStep.YEAR: SelectionStep.MAJOR,
    SelectionStep.COURSE: SelectionStep.YEAR,
}


def _find(options: list[CatalogOption], option_id: str, kind: str) -> CatalogOption:
    for option in options:
        if option.id == option_id:
            return option
    raise ValueError(f"Unknown {kind} {option_id!r}")


class ContextSelector:
    """Walk the cascade one level at a time and emit the finalized context.

    Options of every level come from :class:`CatalogClient`, which caches
    them, so going back and forth does not refetch.
    """

    def __init__(self, catalog: CatalogClient) -> None:
        self._catalog = catalog
        self.step = SelectionStep.MAJOR
        self.majors: list[CatalogOption] = []
        self.years: list[CatalogOption] = []
        self.courses: list[CatalogOption] = []
        self._major: CatalogOption | None = None
        self._year: CatalogOption | None = None

    @property
    def selected_major(self) -> CatalogOption | None:
        return self._major

    @property
    def selected_year(self) -> CatalogOption | None:
        return self._year

    async def load_majors(self) -> list[CatalogOption]:
        names = await self._catalog.list_majors()
        self.majors = [CatalogOption(id=name, name=name) for name in names]
        return self.majors

    async def select_major(self, major_id: str) -> list[CatalogOption]:
        self._major = _find(self.majors, major_id, "major")
        self._year = None
        years = await self._catalog.list_years(self._major.id)
        self.years = [CatalogOption(id=year, name=YEAR_LABEL_TEMPLATE.format(year=year)) for year in years]
        self.courses = []
        self.step = SelectionStep.YEAR
        return self.years

    async def select_year(self, year_id: str) -> list[CatalogOption]:
        if self._major is None:
            raise ValueError("Select a major before a year")
        self._year = _find(self.years, year_id, "year")
        courses = await self._catalog.list_courses(self._major.id, self._year.id)
        self.courses = [CatalogOption(id=course, name=course) for course in courses]
        self.step = SelectionStep.COURSE
        return self.courses

    def select_course(self, course_id: str) -> AcademicContext:
        if self._major is None or self._year is None:
            raise ValueError("Select a major and a year before a course")
        course = _find(self.courses, course_id, "course")
        context = AcademicContext(
            major=self._major.name,
            year=self._year.name,
            course=course.name,
            year_id=self._year.id,
        )
        LOGGER.info(
            "Academic context resolved | major=%s year=%s year_id=%s course=%s",
            context.major,
            context.year,
            context.year_id,
            context.course,
        )
        return context

    def back(self) -> SelectionStep:
        self.step = _PREVIOUS_STEP.get(self.step, SelectionStep.MAJOR)
        return self.step


__all__ = ["ContextSelector", "SelectionStep", "YEAR_LABEL_TEMPLATE"]
