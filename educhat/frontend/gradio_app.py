"""Gradio-powered console for course selection and chat."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from textwrap import dedent
from typing import Any

import gradio as gr

from ..chat.exceptions import ChatError, RequestFailedError
from ..config import Settings
from ..dependencies import create_http_client
from ..history import ChatHistory
from .console import ChatConsole, ClientFactory
from .rendering import render_history

LOGGER = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Impossible de contacter le serveur. Réessaie plus tard."

STATUS_CSS = """
.status-box {
    padding: 0.75rem 1rem;
    border-radius: 0.75rem;
    margin-top: 0.75rem;
    font-weight: 500;
}
.status-box.info {
    background: rgba(59, 130, 246, 0.14);
    border: 1px solid rgba(59, 130, 246, 0.45);
    color: #dbeafe;
}
.status-box.success {
    background: rgba(21, 128, 61, 0.14);
    border: 1px solid rgba(21, 128, 61, 0.45);
    color: #bbf7d0;
}
.status-box.error {
    background: rgba(220, 38, 38, 0.14);
    border: 1px solid rgba(220, 38, 38, 0.45);
    color: #fecaca;
}
"""


def _status_message(message: str, level: str = "info") -> str:
    return f"<div class='status-box {level}'>{message}</div>"


def _session_header(console: ChatConsole) -> str:
    context = console.context
    if context is None:
        return ""
    return f"### {context.course}\n`{context.year}` · `{context.major}`"


def _citation_choices(console: ChatConsole) -> list[tuple[str, int]]:
    return [
        (f"{citation.title} • {citation.document} • Page {citation.page}", index)
        for index, citation in enumerate(console.last_citations())
    ]


async def send_exchange(console: ChatConsole, message: str) -> AsyncIterator[tuple[Any, Any, Any, Any]]:
    """Stream one exchange as (chat, input, history, citations) updates.

    The input is locked on the first update and unlocked on the last one,
    whatever the outcome of the exchange.
    """

    if console.service is None or not (message or "").strip() or console.busy:
        yield gr.update(), gr.update(), gr.update(), gr.update()
        return

    current_id = console.service.session.session_id
    locked = gr.update(value="", interactive=False)
    yield gr.update(), locked, gr.update(), gr.update()
    try:
        async for snapshot in console.ask(message):
            yield snapshot, locked, gr.update(), gr.update()
    except RequestFailedError as exc:
        LOGGER.error("Question failed | session=%s status=%s error=%s", current_id, exc.status, exc)
        gr.Warning(SERVER_ERROR_MESSAGE)
    except ChatError as exc:
        LOGGER.warning("Exchange interrupted | session=%s error=%s", current_id, exc)
    choices = _citation_choices(console)
    yield (
        gr.update(),
        gr.update(interactive=True),
        render_history(console.history, current_id),
        gr.update(choices=choices, value=choices[0][1] if choices else None),
    )


def create_frontend(settings: Settings, *, client_factory: ClientFactory = create_http_client) -> gr.Blocks:
    """Return a configured Gradio Blocks interface."""

    title = settings.frontend.title

    def _console(state: ChatConsole | None) -> ChatConsole:
        return state if state is not None else ChatConsole(settings, client_factory=client_factory)

    async def load_action(state: ChatConsole | None) -> tuple[ChatConsole, Any, str]:
        console = _console(state)
        majors = await console.load_majors()
        if not majors:
            return console, gr.update(choices=[], value=None), _status_message(
                "⚠️ Aucune filière disponible. Le serveur est-il démarré ?", "error"
            )
        return console, gr.update(choices=majors, value=None), _status_message(
            "Choisissez votre filière, puis l'année et le cours.", "info"
        )

    async def major_action(major: str | None, state: ChatConsole | None) -> tuple[ChatConsole, Any, Any]:
        console = _console(state)
        if not major:
            return console, gr.update(choices=[], value=None), gr.update(choices=[], value=None)
        years = await console.select_major(major)
        return console, gr.update(choices=years, value=None), gr.update(choices=[], value=None)

    async def year_action(year: str | None, state: ChatConsole | None) -> tuple[ChatConsole, Any]:
        console = _console(state)
        if not year:
            return console, gr.update(choices=[], value=None)
        courses = await console.select_year(year)
        return console, gr.update(choices=courses, value=None)

    async def start_action(
        course: str | None, state: ChatConsole | None
    ) -> tuple[ChatConsole, list[dict[str, Any]], str, str, str, Any, Any]:
        console = _console(state)
        if not course:
            return (
                console,
                [],
                "",
                render_history(console.history),
                _status_message("⚠️ Sélectionnez un cours.", "error"),
                gr.update(interactive=False),
                gr.update(choices=[], value=None),
            )
        service = await console.start_session(course)
        return (
            console,
            [],
            _session_header(console),
            render_history(console.history, service.session.session_id),
            _status_message(f"✅ Posez vos questions sur {course}.", "success"),
            gr.update(interactive=True, value=""),
            gr.update(choices=[], value=None),
        )

    async def new_chat_action(
        state: ChatConsole | None,
    ) -> tuple[ChatConsole, list[dict[str, Any]], str, Any, Any]:
        console = _console(state)
        if console.context is None:
            return console, [], render_history(console.history), gr.update(), gr.update()
        service = await console.start_session()
        return (
            console,
            [],
            render_history(console.history, service.session.session_id),
            gr.update(choices=[], value=None),
            gr.update(interactive=True, value=""),
        )

    async def send_action(message: str, state: ChatConsole | None):
        """Stream the answer into the chat pane; the input stays disabled meanwhile."""

        console = _console(state)
        async for update in send_exchange(console, message):
            yield (console, *update)

    def copy_action(index: int | None, state: ChatConsole | None) -> None:
        console = _console(state)
        if index is None:
            return
        try:
            console.copy_citation(int(index))
        except IndexError:
            gr.Warning("Cette source n'est plus disponible.")
            return
        gr.Info("La référence de la source a été copiée dans le presse-papier")

    with gr.Blocks(title=title, css=STATUS_CSS) as demo:
        console_state: gr.State = gr.State(None)

        with gr.Row():
            with gr.Column(scale=1, min_width=240):
                gr.Markdown(f"## {title}")
                new_chat_button = gr.Button("Nouveau chat")
                history_view = gr.Markdown(render_history(ChatHistory()))

            with gr.Column(scale=3):
                gr.Markdown(
                    dedent(
                        f"""
                        # {title}

                        {settings.frontend.description}
                        """
                    ).strip()
                )
                with gr.Group():
                    major_input = gr.Dropdown(label="Filière", choices=[], interactive=True)
                    year_input = gr.Dropdown(label="Année", choices=[], interactive=True)
                    course_input = gr.Dropdown(label="Cours", choices=[], interactive=True)
                    start_button = gr.Button("Commencer", variant="primary")
                selection_feedback = gr.HTML(_status_message("Chargement des filières...", "info"))

                session_header = gr.Markdown("")
                chatbot = gr.Chatbot(type="messages", label="Conversation", height=480)
                with gr.Row():
                    message_input = gr.Textbox(
                        placeholder="Envoyer un message...",
                        show_label=False,
                        lines=2,
                        interactive=False,
                        scale=5,
                    )
                    send_button = gr.Button("Envoyer", variant="primary", scale=1)
                with gr.Row():
                    citation_input = gr.Dropdown(label="Sources consultées", choices=[], interactive=True, scale=5)
                    copy_button = gr.Button("Copier la référence", scale=1)
                gr.Markdown(f"<small>{settings.frontend.disclaimer}</small>")

        demo.load(load_action, inputs=[console_state], outputs=[console_state, major_input, selection_feedback])
        major_input.change(
            major_action,
            inputs=[major_input, console_state],
            outputs=[console_state, year_input, course_input],
        )
        year_input.change(year_action, inputs=[year_input, console_state], outputs=[console_state, course_input])
        start_button.click(
            start_action,
            inputs=[course_input, console_state],
            outputs=[
                console_state,
                chatbot,
                session_header,
                history_view,
                selection_feedback,
                message_input,
                citation_input,
            ],
        )
        new_chat_button.click(
            new_chat_action,
            inputs=[console_state],
            outputs=[console_state, chatbot, history_view, citation_input, message_input],
        )
        send_outputs = [console_state, chatbot, message_input, history_view, citation_input]
        message_input.submit(send_action, inputs=[message_input, console_state], outputs=send_outputs)
        send_button.click(send_action, inputs=[message_input, console_state], outputs=send_outputs)
        copy_button.click(copy_action, inputs=[citation_input, console_state], outputs=None)

    return demo


__all__ = ["create_frontend", "send_exchange", "SERVER_ERROR_MESSAGE"]
