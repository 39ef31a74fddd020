"""Assemble the generation prompt from project context, files, research and answers."""

import base64
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

from analyst_pro.core.errors import FileDecodeError
from analyst_pro.core.file_codec import decode
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import Answer, Project, ReferenceFile, Template

logger = get_logger(__name__)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}
TEXT_MIME_TYPES = {
    "application/json",
    "application/xml",
    "application/x-yaml",
    "application/yaml",
}

SYSTEM_PROMPT = """You are a world-class Senior Business Analyst and strategy consultant \
with extensive Fortune 500 experience, producing formal business documentation (BRDs, SRSs, \
RFPs, RACI matrices, user stories and impact analyses).

Write in a professional, objective and consultative register. Never invent stakeholder \
names or figures that contradict the provided context; where information is missing, state \
the assumption explicitly."""


@dataclass
class GenerationPayload:
    """Everything a single generation call needs."""

    system: str
    content: list[dict[str, Any]] = field(default_factory=list)
    doc_type_name: str = ""

    @property
    def prompt(self) -> str:
        """The trailing text block (the instruction prompt)."""
        for block in reversed(self.content):
            if block.get("type") == "text":
                return block["text"]
        return ""


def format_answers(answers: list[Answer]) -> str:
    """Render the interview transcript in question order."""
    return "\n\n".join(
        f"**Q: {answer.question_text}**\n**User Input:** {answer.text}" for answer in answers
    )


def _decode_text(raw_bytes: bytes) -> str:
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        return raw_bytes.decode("utf-8-sig")
    try:
        return raw_bytes.decode("utf-8")
    except UnicodeDecodeError:
        return raw_bytes.decode("latin-1")


def _docx_text(raw_bytes: bytes) -> str:
    from docx import Document

    doc = Document(BytesIO(raw_bytes))
    parts = [para.text.strip() for para in doc.paragraphs if para.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def _text_document(name: str, text: str) -> dict[str, Any]:
    return {
        "type": "document",
        "source": {"type": "text", "media_type": "text/plain", "data": text},
        "title": name,
    }


def file_block(ref: ReferenceFile) -> dict[str, Any] | None:
    """
    Convert one stored reference file into a Messages API content block.

    The payload is always decompressed first. Returns None when the file
    type cannot be represented (logged, not raised).
    """
    raw_bytes = decode(ref)
    mime_type = (ref.mime_type or "").split(";")[0].strip().lower()

    if mime_type == PDF_MIME_TYPE:
        return {
            "type": "document",
            "source": {
                "type": "base64",
                "media_type": PDF_MIME_TYPE,
                "data": base64.b64encode(raw_bytes).decode("ascii"),
            },
            "title": ref.name,
        }

    if mime_type in IMAGE_MIME_TYPES:
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": mime_type,
                "data": base64.b64encode(raw_bytes).decode("ascii"),
            },
        }

    if mime_type == DOCX_MIME_TYPE or ref.name.lower().endswith(".docx"):
        try:
            text = _docx_text(raw_bytes)
        except Exception as e:
            logger.warning(f"Could not read Word document '{ref.name}': {e}")
            return None
        return _text_document(ref.name, text) if text else None

    if mime_type.startswith("text/") or mime_type in TEXT_MIME_TYPES:
        return _text_document(ref.name, _decode_text(raw_bytes))

    try:
        return _text_document(ref.name, raw_bytes.decode("utf-8"))
    except UnicodeDecodeError:
        logger.warning(f"Skipping reference file '{ref.name}' with unsupported type '{mime_type}'")
        return None


def file_blocks(files: list[ReferenceFile]) -> list[dict[str, Any]]:
    """Content blocks for every usable reference file, in upload order."""
    blocks = []
    for ref in files:
        try:
            block = file_block(ref)
        except FileDecodeError as e:
            logger.error(f"Skipping unreadable reference file '{ref.name}': {e}")
            continue
        if block is not None:
            blocks.append(block)
    return blocks


def build_prompt(
    project: Project,
    template: Template,
    answers: list[Answer],
    grounding: str | None = None,
    has_files: bool = False,
) -> str:
    """Instruction text for a generation call."""
    sections = [
        f"Create a professional {template.name} document.",
        "",
        "## Project Context",
        f"Project Name: {project.name}",
        f"Project Description: {project.description or 'Not provided'}",
    ]

    if has_files:
        sections += [
            "",
            "## Reference Files",
            "The attached files were supplied by the user as reference material. Use them "
            "as primary sources where they are relevant.",
        ]

    if grounding:
        sections += [
            "",
            "## External Research Context",
            grounding,
        ]

    sections += [
        "",
        "## Stakeholder Interview",
        format_answers(answers) if answers else "No interview answers were provided.",
        "",
        "## Instructions",
        "1. Expand the interview answers. They are shorthand; turn each into detailed, "
        "professional prose or formal requirements.",
        "2. Use the reference files for terminology, constraints and business goals. Where "
        "an interview answer contradicts a reference file, follow the answer and note the "
        "deviation if it matters.",
        "3. Treat the external research as supporting material for market context and "
        "regulations. Interview answers take precedence when the two disagree.",
        f"4. Include the standard sections of a {template.name} even when not asked "
        "(assumptions, dependencies, compliance, glossary). Write requirements as SMART "
        "criteria.",
        "5. Use Markdown headings (#, ##, ###), tables for structured data and bullet "
        "points. Start with the title and add no conversational text before or after "
        "the document.",
    ]
    return "\n".join(sections)


def build_context(
    project: Project,
    template: Template,
    answers: list[Answer],
    grounding: str | None = None,
) -> GenerationPayload:
    """
    Build the generation payload.

    Args:
        project: Active project (name, description, reference files)
        template: Selected document type and display name
        answers: Interview answers, in question order
        grounding: Optional external research text

    Returns:
        GenerationPayload with attachments first and the instruction prompt last
    """
    attachments = file_blocks(project.files)
    prompt = build_prompt(
        project,
        template,
        answers,
        grounding=grounding,
        has_files=bool(attachments),
    )
    return GenerationPayload(
        system=SYSTEM_PROMPT,
        content=[*attachments, {"type": "text", "text": prompt}],
        doc_type_name=template.name,
    )
