"""Interview question templates per document type.

Known document types get a fixed, hand-curated question list. Custom types
get either a minimal two-question default or an AI-generated list, depending
on QUESTION_FALLBACK_POLICY. Question ids are assigned here, once, from the
position in the returned ordering.
"""

from typing import Any

from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import DEFAULT_PLACEHOLDER, DocType, Question, Template

logger = get_logger(__name__)

MIN_AI_QUESTIONS = 7
MAX_AI_QUESTIONS = 10

# (text, required)
STATIC_QUESTIONS: dict[DocType, list[tuple[str, bool]]] = {
    DocType.BRD: [
        ("What is the project title and background?", True),
        ("What is the project's business objective or need?", True),
        ("Who are the key stakeholders?", True),
        ("What is the project scope?", True),
        ("What are the project boundaries or exclusions?", True),
        ("What are the high-level business requirements?", True),
        ("What are the expected benefits and success criteria?", True),
        ("What is the estimated budget/resource allocation?", False),
        ("What is the timeline and major milestones?", True),
        ("What are the identified risks and mitigation plans?", False),
        ("Are there any assumptions or dependencies?", False),
        ("Who will provide project governance/oversight?", False),
    ],
    DocType.SRS: [
        ("What is the system overview and purpose?", True),
        ("What are the major functions/features required?", True),
        ("What are the workflow or business process requirements?", True),
        ("What are the data input, processing, and output specifications?", True),
        ("Are there specific interface requirements with other systems?", False),
        ("What non-functional requirements apply (e.g., performance, availability)?", True),
        ("Are there any regulatory or security requirements?", True),
        ("What are the expected user roles and their access levels?", True),
        ("What are the test/acceptance criteria for each function?", True),
    ],
    DocType.USER_STORIES: [
        ("Who is the user or persona?", True),
        ("What action or feature do they need?", True),
        ("Why is this feature important to the user?", True),
        ("What are the preconditions for the user story?", False),
        ("What are the specific acceptance criteria (Given/When/Then)?", True),
        ("Are there any edge cases or exceptions?", False),
        ("How will you measure if the story is done?", True),
    ],
    DocType.RFP: [
        ("What is the background and goal of the project?", True),
        ("What specific products/services are requested?", True),
        ("What are the mandatory requirements vendors must fulfill?", True),
        ("What is the anticipated budget range?", False),
        ("What is the desired project timeline?", True),
        ("What are the proposal submission guidelines?", True),
        ("What are the selection and evaluation criteria?", True),
        ("What references or proof of capability are requested?", False),
        ("Are there specific questions vendors must answer?", True),
    ],
    DocType.RACI: [
        ("What are the project tasks or deliverables?", True),
        ("Who are the key roles (Responsible, Accountable, Consulted, Informed)?", True),
        ("What is the assignment of roles to each task?", True),
        ("Are any task dependencies or sequencing needed?", False),
        ("How often will the matrix be reviewed or updated?", False),
    ],
    DocType.IMPACT_ANALYSIS: [
        ("What is the potential change/event being analyzed?", True),
        ("Which business processes or systems are affected?", True),
        ("What are the possible consequences for each area?", True),
        ("What is the estimated duration and severity of impact?", True),
        ("Who are the key stakeholders impacted?", True),
        ("What mitigating actions or contingency plans exist?", True),
        ("What resources are needed for recovery?", False),
        ("Are there historical incidents of similar impact?", False),
    ],
}

DEFAULT_QUESTIONS: list[Question] = [
    Question(
        id=0,
        text="What is the main objective of this document?",
        placeholder="Describe the goal...",
        required=True,
    ),
    Question(
        id=1,
        text="Who are the key stakeholders?",
        placeholder="List stakeholders...",
        required=True,
    ),
]


def _number(items: list[tuple[str, bool]]) -> list[Question]:
    return [
        Question(id=index, text=text, required=required, placeholder=DEFAULT_PLACEHOLDER)
        for index, (text, required) in enumerate(items)
    ]


def static_questions(doc_type: DocType) -> list[Question]:
    """Fixed questions for a known type, or the two-question default."""
    items = STATIC_QUESTIONS.get(doc_type)
    if not items:
        return list(DEFAULT_QUESTIONS)
    return _number(items)


async def get_questions(
    template: Template,
    collaborator: Any = None,
    policy: str = "default",
) -> list[Question]:
    """
    Ordered interview questions for a template.

    Args:
        template: Selected document type and display name
        collaborator: AI collaborator, used only for custom types under the "ai" policy
        policy: "default" or "ai"

    Returns:
        Questions with ids 0..n-1
    """
    if template.doc_type in STATIC_QUESTIONS:
        return static_questions(template.doc_type)

    if policy != "ai" or collaborator is None:
        return list(DEFAULT_QUESTIONS)

    try:
        generated = await collaborator.generate_questions(template.name)
    except Exception as e:
        logger.warning(f"Question generation failed for '{template.name}', using default set: {e}")
        return list(DEFAULT_QUESTIONS)

    usable = [(g.text.strip(), g.required) for g in generated if g.text and g.text.strip()]
    if len(usable) < MIN_AI_QUESTIONS:
        logger.warning(
            f"Question generation for '{template.name}' returned {len(usable)} usable items, "
            "using default set"
        )
        return list(DEFAULT_QUESTIONS)

    return _number(usable[:MAX_AI_QUESTIONS])
