"""Document generation graph.

fetch_grounding -> assemble_context -> stream_document -> END
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from langgraph.graph import END, StateGraph

from analyst_pro.core.context_assembler import GenerationPayload, build_context
from analyst_pro.core.logging import get_logger, log_with_context
from analyst_pro.core.schemas_documents import Answer, Project, Template

logger = get_logger(__name__)


@dataclass
class DocumentGenerationState:
    """State for the document generation graph."""

    # Input fields
    template: Template
    project: Project
    collaborator: Any
    answers: list[Answer] = field(default_factory=list)
    on_text: Callable[[str], None] | None = None
    grounding_enabled: bool = True
    session_id: str | None = None

    # Processing state
    grounding: str | None = None
    payload: GenerationPayload | None = None

    # Output
    content: str = ""


async def fetch_grounding(state: DocumentGenerationState) -> dict[str, Any]:
    """Gather external research. Never fails the graph."""
    if not state.grounding_enabled:
        return {"grounding": None}

    try:
        grounding = await state.collaborator.fetch_grounding(state.project)
    except Exception as e:
        logger.warning(f"Grounding skipped: {e}", extra={"session_id": state.session_id})
        grounding = None

    if grounding:
        logger.info(
            f"Grounding gathered ({len(grounding)} chars)",
            extra={"session_id": state.session_id},
        )
    return {"grounding": grounding}


def assemble_context(state: DocumentGenerationState) -> dict[str, Any]:
    """Build the generation payload."""
    payload = build_context(
        state.project,
        state.template,
        state.answers,
        grounding=state.grounding,
    )
    return {"payload": payload}


async def stream_document(state: DocumentGenerationState) -> dict[str, Any]:
    """Stream the document through the collaborator."""
    if state.payload is None:
        raise ValueError("No payload to generate from")

    content = await state.collaborator.stream_document(
        state.payload,
        on_text=state.on_text,
        project_id=state.project.id,
    )
    return {"content": content}


def build_generate_document_graph() -> StateGraph:
    """Build the document generation graph."""
    graph = StateGraph(DocumentGenerationState)

    graph.add_node("fetch_grounding", fetch_grounding)
    graph.add_node("assemble_context", assemble_context)
    graph.add_node("stream_document", stream_document)

    graph.set_entry_point("fetch_grounding")
    graph.add_edge("fetch_grounding", "assemble_context")
    graph.add_edge("assemble_context", "stream_document")
    graph.add_edge("stream_document", END)

    return graph


generate_document_graph = build_generate_document_graph().compile()


async def run_document_generation(
    template: Template,
    project: Project,
    answers: list[Answer],
    collaborator: Any,
    on_text: Callable[[str], None] | None = None,
    grounding_enabled: bool = True,
    session_id: str | None = None,
) -> str:
    """
    Generate a document for the given interview answers.

    Returns:
        The complete document text

    Raises:
        GenerationFailedError: Propagated from the collaborator
    """
    log_with_context(
        logger,
        logging.INFO,
        f"Starting generation of {template.name}",
        session_id=session_id,
        project_id=project.id,
        answers=len(answers),
    )

    initial_state = DocumentGenerationState(
        template=template,
        project=project,
        collaborator=collaborator,
        answers=list(answers),
        on_text=on_text,
        grounding_enabled=grounding_enabled,
        session_id=session_id,
    )

    result = await generate_document_graph.ainvoke(initial_state)
    return result.get("content") or ""
