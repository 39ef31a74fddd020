"""Section-scoped refinement of a generated document."""

import re
from typing import Any

from analyst_pro.core.errors import (
    InputValidationError,
    RefinementFailedError,
    RefinementRejectedError,
)
from analyst_pro.core.llm import strip_code_fence
from analyst_pro.core.logging import get_logger

logger = get_logger(__name__)

HEADING_PATTERN = re.compile(r"^(#{1,3})\s+(.+)$")
FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
WHOLE_DOCUMENT = "Entire Document"


def _headings(content: str) -> list[tuple[int, int, str]]:
    """(offset, level, heading line) for each heading outside fenced code blocks."""
    headings = []
    in_fence = False
    offset = 0
    for line in content.splitlines(keepends=True):
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
        elif not in_fence:
            match = HEADING_PATTERN.match(line.rstrip("\r\n"))
            if match:
                headings.append((offset, len(match.group(1)), match.group(0).strip()))
        offset += len(line)
    return headings


def list_sections(content: str) -> list[str]:
    """
    Heading lines (levels 1-3) in document order, hashes included.

    Lines inside fenced code blocks are not headings. An empty list means the
    whole document is the only refinement target.
    """
    return [heading for _, _, heading in _headings(content or "")]


def section_span(content: str, section: str) -> tuple[int, int] | None:
    """
    Character span of a section: from its heading line up to the next heading
    of the same or a higher level (or the end of the document).
    """
    headings = _headings(content)
    for index, (start, level, heading) in enumerate(headings):
        if heading != section.strip():
            continue
        end = len(content)
        for following_start, following_level, _ in headings[index + 1:]:
            if following_level <= level:
                end = following_start
                break
        return start, end
    return None


def untouched_outside(original: str, revised: str, section: str) -> bool:
    """True when every character outside the target section is unchanged."""
    original = original.strip()
    revised = revised.strip()

    span = section_span(original, section)
    if span is None:
        return False

    start, end = span
    prefix = original[:start]
    suffix = original[end:]

    if not revised.startswith(prefix):
        return False
    if not revised.endswith(suffix):
        return False
    return len(revised) >= len(prefix) + len(suffix)


async def refine(
    content: str,
    section: str | None,
    instruction: str,
    collaborator: Any,
    verify: bool = False,
) -> str:
    """
    Rewrite one section of a document according to an instruction.

    Args:
        content: Current document (Markdown)
        section: Heading line to target; None or WHOLE_DOCUMENT targets everything
        instruction: Free-text rewrite instruction
        collaborator: AI collaborator exposing ``refine_section``
        verify: Reject rewrites that touched text outside the section

    Returns:
        Revised full document with any wrapping code fence removed

    Raises:
        InputValidationError: Blank instruction or unknown section
        RefinementFailedError: The collaborator call failed or returned nothing
        RefinementRejectedError: ``verify`` is on and the rewrite strayed
    """
    if not instruction or not instruction.strip():
        raise InputValidationError("Refinement instruction must not be empty")

    target = section if section and section != WHOLE_DOCUMENT else None
    if target is not None and target.strip() not in list_sections(content):
        raise InputValidationError(f"Unknown section: {target}")

    try:
        raw = await collaborator.refine_section(content, target or WHOLE_DOCUMENT, instruction)
    except RefinementFailedError:
        raise
    except Exception as e:
        logger.error(f"Refinement failed: {e}")
        raise RefinementFailedError("Failed to refine document.") from e

    revised = strip_code_fence(raw or "")
    if not revised.strip():
        raise RefinementFailedError("Refinement returned an empty document.")

    if verify and target is not None and not untouched_outside(content, revised, target):
        logger.warning(f"Refinement of '{target}' changed text outside the section, rejecting")
        raise RefinementRejectedError(
            f"Refinement of '{target}' changed content outside that section."
        )

    return revised
