"""Interview preparation graph.

load_questions -> auto_answer (only when the project has reference files) -> END
"""

from dataclasses import dataclass, field
from typing import Any

from langgraph.graph import END, StateGraph

from analyst_pro.core.logging import get_logger
from analyst_pro.core.question_bank import get_questions
from analyst_pro.core.schemas_documents import Answer, Project, Question, Template

logger = get_logger(__name__)


@dataclass
class InterviewPrepState:
    """State for the interview preparation graph."""

    # Input fields
    template: Template
    project: Project
    collaborator: Any
    question_policy: str = "default"
    session_id: str | None = None

    # Output
    questions: list[Question] = field(default_factory=list)
    answers: list[Answer] = field(default_factory=list)


async def load_questions(state: InterviewPrepState) -> dict[str, Any]:
    """Load the question set for the selected template."""
    questions = await get_questions(
        state.template,
        collaborator=state.collaborator,
        policy=state.question_policy,
    )
    logger.info(
        f"Loaded {len(questions)} questions for {state.template.name}",
        extra={"session_id": state.session_id, "project_id": state.project.id},
    )
    return {"questions": questions}


def should_auto_answer(state: InterviewPrepState) -> str:
    if state.project.files and state.questions:
        return "auto_answer"
    return END


async def auto_answer(state: InterviewPrepState) -> dict[str, Any]:
    """Pre-fill answers from reference files. Failure leaves answers empty."""
    try:
        answers = await state.collaborator.auto_answer(state.questions, state.project)
    except Exception as e:
        logger.error(
            f"Auto-answer failed, continuing with empty answers: {e}",
            extra={"session_id": state.session_id},
        )
        return {"answers": []}
    return {"answers": answers}


def build_interview_prep_graph() -> StateGraph:
    """Build the interview preparation graph."""
    graph = StateGraph(InterviewPrepState)

    graph.add_node("load_questions", load_questions)
    graph.add_node("auto_answer", auto_answer)

    graph.set_entry_point("load_questions")
    graph.add_conditional_edges(
        "load_questions",
        should_auto_answer,
        {
            "auto_answer": "auto_answer",
            END: END,
        },
    )
    graph.add_edge("auto_answer", END)

    return graph


interview_prep_graph = build_interview_prep_graph().compile()


async def run_interview_prep(
    template: Template,
    project: Project,
    collaborator: Any,
    question_policy: str = "default",
    session_id: str | None = None,
) -> tuple[list[Question], list[Answer]]:
    """
    Prepare an interview: questions plus any answers found in reference files.

    Returns:
        Tuple of (questions, pre-filled answers)
    """
    initial_state = InterviewPrepState(
        template=template,
        project=project,
        collaborator=collaborator,
        question_policy=question_policy,
        session_id=session_id,
    )

    result = await interview_prep_graph.ainvoke(initial_state)

    # StateGraph.ainvoke() returns a dict, not the typed state object
    return list(result.get("questions") or []), list(result.get("answers") or [])
