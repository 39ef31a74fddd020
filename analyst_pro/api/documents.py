"""API endpoints for the document flow: templates, interview, generation, refinement, save."""

import asyncio
import json
from typing import Any, AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from analyst_pro.api.errors import status_for, to_http_exception
from analyst_pro.core.auth_middleware import get_user_session
from analyst_pro.core.errors import AnalystProError, InvalidTransitionError
from analyst_pro.core.logging import get_logger
from analyst_pro.core.orchestrator import AppView
from analyst_pro.core.schemas_documents import DocType
from analyst_pro.core.schemas_projects import (
    ArtifactResponse,
    InterviewRequest,
    RefineRequest,
    SectionsResponse,
    SelectTemplateRequest,
    SessionStateResponse,
    SuggestAnswerRequest,
    SuggestAnswerResponse,
)
from analyst_pro.core.sessions import UserSession

logger = get_logger(__name__)

router = APIRouter()


def _state(session: UserSession) -> SessionStateResponse:
    return SessionStateResponse.from_orchestrator(session.orchestrator)


def _sse_event(data: dict[str, Any]) -> str:
    return f"data: {json.dumps(data, default=str)}\n\n"


@router.get("", response_model=SessionStateResponse)
async def get_state(session: UserSession = Depends(get_user_session)) -> SessionStateResponse:
    """Current view, questions, answers and document of the caller's flow."""
    return _state(session)


@router.post("/projects/{project_id}/open", response_model=SessionStateResponse)
async def open_project(
    project_id: str,
    session: UserSession = Depends(get_user_session),
) -> SessionStateResponse:
    try:
        session.orchestrator.open_project(project_id)
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/projects/close", response_model=SessionStateResponse)
async def close_project(session: UserSession = Depends(get_user_session)) -> SessionStateResponse:
    try:
        session.orchestrator.show_projects()
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/template-select", response_model=SessionStateResponse)
async def enter_template_select(
    session: UserSession = Depends(get_user_session),
) -> SessionStateResponse:
    try:
        session.orchestrator.enter_template_select()
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/template", response_model=SessionStateResponse)
async def select_template(
    request: SelectTemplateRequest,
    session: UserSession = Depends(get_user_session),
) -> SessionStateResponse:
    """Start a flow: load questions and pre-fill answers from reference files."""
    try:
        await session.orchestrator.select_template(DocType.parse(request.doc_type), request.name)
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/interview", response_model=SessionStateResponse)
async def complete_interview(
    request: InterviewRequest,
    session: UserSession = Depends(get_user_session),
) -> SessionStateResponse:
    """Submit answers and generate the document (non-streaming)."""
    try:
        await session.orchestrator.complete_interview(request.answers)
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/interview/stream")
async def complete_interview_stream(
    request: InterviewRequest,
    session: UserSession = Depends(get_user_session),
) -> StreamingResponse:
    """
    Submit answers and stream generation progress as Server-Sent Events.

    Events:
        {"type": "content", "content": <full text so far>}
        {"type": "done", "generated": bool, "state": {...}}
        {"type": "error", "status": int, "message": str}
    """
    orchestrator = session.orchestrator
    try:
        orchestrator.require_idle()
        if orchestrator.view != AppView.INTERVIEW:
            raise InvalidTransitionError(f"Not allowed from {orchestrator.view.value}")
        orchestrator.build_answers(request.answers)
    except AnalystProError as e:
        raise to_http_exception(e) from e

    queue: asyncio.Queue = asyncio.Queue()

    def on_text(text: str) -> None:
        queue.put_nowait(("content", text))

    async def run() -> None:
        try:
            generated = await orchestrator.complete_interview(request.answers, on_text=on_text)
            queue.put_nowait(("done", generated))
        except AnalystProError as e:
            queue.put_nowait(("error", e))
        except Exception as e:
            logger.error(f"Unexpected error during generation: {e}", exc_info=True)
            queue.put_nowait(("error", e))

    async def generate() -> AsyncGenerator[str, None]:
        task = asyncio.create_task(run())
        finished = False
        while not finished:
            events = [await queue.get()]
            while not queue.empty():
                events.append(queue.get_nowait())

            # Only the latest accumulated text matters
            latest = None
            for kind, value in events:
                if kind == "content":
                    latest = value
            if latest is not None:
                yield _sse_event({"type": "content", "content": latest})

            for kind, value in events:
                if kind == "done":
                    state = _state(session).model_dump(mode="json")
                    yield _sse_event({"type": "done", "generated": value, "state": state})
                    finished = True
                elif kind == "error":
                    status_code = status_for(value) if isinstance(value, AnalystProError) else 500
                    yield _sse_event({"type": "error", "status": status_code, "message": str(value)})
                    finished = True
        await task

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@router.post("/interview/suggest", response_model=SuggestAnswerResponse)
async def suggest_answer(
    request: SuggestAnswerRequest,
    session: UserSession = Depends(get_user_session),
) -> SuggestAnswerResponse:
    try:
        suggestion = await session.orchestrator.suggest_answer(request.question_id)
        return SuggestAnswerResponse(suggestion=suggestion)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/edit-responses", response_model=SessionStateResponse)
async def edit_responses(session: UserSession = Depends(get_user_session)) -> SessionStateResponse:
    try:
        session.orchestrator.edit_responses()
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/back", response_model=SessionStateResponse)
async def back(session: UserSession = Depends(get_user_session)) -> SessionStateResponse:
    try:
        session.orchestrator.back()
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.get("/sections", response_model=SectionsResponse)
async def list_sections(session: UserSession = Depends(get_user_session)) -> SectionsResponse:
    """Refinement targets of the previewed document (empty means whole document)."""
    return SectionsResponse(sections=session.orchestrator.sections())


@router.post("/refine", response_model=SessionStateResponse)
async def refine(
    request: RefineRequest,
    session: UserSession = Depends(get_user_session),
) -> SessionStateResponse:
    try:
        await session.orchestrator.refine(request.section, request.instruction)
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/save", response_model=ArtifactResponse)
async def save(session: UserSession = Depends(get_user_session)) -> ArtifactResponse:
    """Persist the previewed document as a new artifact or a new version."""
    try:
        artifact = session.orchestrator.save()
        return ArtifactResponse.from_artifact(artifact)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/artifacts/{artifact_id}/open", response_model=SessionStateResponse)
async def open_artifact(
    artifact_id: str,
    session: UserSession = Depends(get_user_session),
) -> SessionStateResponse:
    try:
        session.orchestrator.open_artifact(artifact_id)
        return _state(session)
    except AnalystProError as e:
        raise to_http_exception(e) from e
