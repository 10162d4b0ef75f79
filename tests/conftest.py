from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
import json
from pathlib import Path
import sys
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import httpx
import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from educhat import dependencies
from educhat.chat.models import AcademicContext
from educhat.config import Settings


def sse_frame(payload: Any) -> str:
    """Encode ``payload`` as the data line of one event; strings are sent verbatim."""

    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


@dataclass
class FakeBackend:
    """Scriptable stand-in for the question answering service."""

    majors: list[str] = field(default_factory=lambda: ["SI", "Génie Civil"])
    years: dict[str, list[str]] = field(default_factory=lambda: {"SI": ["1", "3"], "Génie Civil": ["2"]})
    courses: dict[tuple[str, str], list[str]] = field(
        default_factory=lambda: {("SI", "3"): ["programation_systeme", "reseaux"], ("SI", "1"): ["algo"]}
    )
    frames: list[Any] = field(default_factory=list)
    stream_status: int = 200
    answer: dict[str, Any] = field(
        default_factory=lambda: {
            "answer": "Un mutex protège une section critique.",
            "sources": [{"title": "Ch.4", "document": "cours.pdf", "page": 12}],
        }
    )
    question_status: int = 200
    calls: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)

    def calls_to(self, path: str) -> list[dict[str, Any]]:
        return [payload for _, call_path, payload in self.calls if call_path == path]


def create_backend_app(backend: FakeBackend) -> FastAPI:
    app = FastAPI()

    @app.get("/major")
    async def list_majors() -> dict[str, list[str]]:
        backend.calls.append(("GET", "/major", {}))
        return {"majors": backend.majors}

    @app.get("/year/{major}")
    async def list_years(major: str) -> dict[str, list[str]]:
        backend.calls.append(("GET", "/year", {"major": major}))
        if major not in backend.years:
            raise HTTPException(status_code=404, detail="Unknown major")
        return {"years": backend.years[major]}

    @app.get("/course/{major}/{year}")
    async def list_courses(major: str, year: str) -> dict[str, list[str]]:
        backend.calls.append(("GET", "/course", {"major": major, "year": year}))
        return {"courses": backend.courses.get((major, year), [])}

    @app.get("/chat/stream")
    async def chat_stream(request: Request):
        backend.calls.append(("GET", "/chat/stream", dict(request.query_params)))
        if backend.stream_status != 200:
            return JSONResponse({"detail": "stream unavailable"}, status_code=backend.stream_status)

        async def _events():
            for payload in backend.frames:
                yield sse_frame(payload)

        return StreamingResponse(_events(), media_type="text/event-stream")

    @app.post("/chat/question")
    async def chat_question(request: Request):
        backend.calls.append(("POST", "/chat/question", await request.json()))
        if backend.question_status != 200:
            return JSONResponse({"detail": "question failed"}, status_code=backend.question_status)
        return backend.answer

    return app


@pytest.fixture
def settings() -> Settings:
    if hasattr(dependencies.get_settings, "cache_clear"):
        dependencies.get_settings.cache_clear()
    return Settings()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_client(settings: Settings, backend: FakeBackend) -> Callable[..., httpx.AsyncClient]:
    """Return a factory for clients bound to the fake backend, or to ``transport`` when given."""

    app = create_backend_app(backend)

    def _factory(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
        return dependencies.create_http_client(settings, transport=transport or httpx.ASGITransport(app=app))

    return _factory


@pytest.fixture
def context() -> AcademicContext:
    return AcademicContext(major="SI", year="Année 3", course="programation_systeme")


class ScriptedStream(httpx.AsyncByteStream):
    """Event-stream body that can pause on a gate and end with a transport error."""

    def __init__(
        self,
        head: list[str],
        *,
        gate: asyncio.Event | None = None,
        tail: list[str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._head = head
        self._gate = gate
        self._tail = tail or []
        self._error = error

    async def __aiter__(self):
        for chunk in self._head:
            yield chunk.encode("utf-8")
        if self._gate is not None:
            await self._gate.wait()
        for chunk in self._tail:
            yield chunk.encode("utf-8")
        if self._error is not None:
            raise self._error


@dataclass
class ScriptedBackend:
    """Fault-injecting backend served through ``httpx.MockTransport``."""

    head: list[str] = field(default_factory=list)
    tail: list[str] = field(default_factory=list)
    gate: asyncio.Event | None = None
    error: Exception | None = None
    content_type: str = "text/event-stream"
    stream_status: int = 200
    answer: Any = field(default_factory=lambda: {"answer": "Réponse complète", "sources": None})
    question_status: int = 200
    question_error: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/chat/stream":
            if self.stream_status != 200:
                return httpx.Response(self.stream_status, json={"detail": "stream unavailable"})
            return httpx.Response(
                200,
                headers={"content-type": self.content_type},
                stream=ScriptedStream(self.head, gate=self.gate, tail=self.tail, error=self.error),
            )
        if request.url.path == "/chat/question":
            if self.question_error is not None:
                raise self.question_error
            if isinstance(self.answer, str):
                return httpx.Response(self.question_status, text=self.answer)
            return httpx.Response(self.question_status, json=self.answer)
        return httpx.Response(404, json={"detail": "not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def scripted() -> ScriptedBackend:
    return ScriptedBackend()
