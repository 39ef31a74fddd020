"""Tests for generation prompt assembly."""

import base64
from io import BytesIO

from docx import Document

from analyst_pro.core.context_assembler import (
    DOCX_MIME_TYPE,
    SYSTEM_PROMPT,
    build_context,
    build_prompt,
    file_block,
    file_blocks,
    format_answers,
)
from analyst_pro.core.file_codec import encode
from analyst_pro.core.schemas_documents import (
    Answer,
    DocType,
    Project,
    ReferenceFile,
    Template,
)

LIMIT = 716800


def _ref(data: bytes, mime_type: str | None, name: str) -> ReferenceFile:
    return encode(data, mime_type, name, limit=LIMIT)


def _docx_bytes() -> bytes:
    doc = Document()
    doc.add_paragraph("Checkout must support Apple Pay.")
    table = doc.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Owner"
    table.rows[0].cells[1].text = "Payments team"
    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


class TestFormatAnswers:
    def test_transcript_layout(self):
        answers = [
            Answer(question_id=0, question_text="What is the scope?", text="Web checkout"),
            Answer(question_id=1, question_text="Who approves?", text="CFO"),
        ]
        assert format_answers(answers) == (
            "**Q: What is the scope?**\n**User Input:** Web checkout\n\n"
            "**Q: Who approves?**\n**User Input:** CFO"
        )


class TestFileBlock:
    def test_pdf_becomes_base64_document(self):
        raw = b"%PDF-1.4 fake"
        block = file_block(_ref(raw, "application/pdf", "brief.pdf"))

        assert block["type"] == "document"
        assert block["source"]["media_type"] == "application/pdf"
        assert base64.b64decode(block["source"]["data"]) == raw
        assert block["title"] == "brief.pdf"

    def test_image_becomes_image_block(self):
        raw = b"\x89PNG\r\n\x1a\n...."
        block = file_block(_ref(raw, "image/png", "wireframe.png"))

        assert block["type"] == "image"
        assert block["source"]["media_type"] == "image/png"
        assert base64.b64decode(block["source"]["data"]) == raw

    def test_text_is_decompressed_into_text_document(self):
        block = file_block(_ref("Café notes".encode("utf-8"), "text/markdown", "notes.md"))

        assert block["type"] == "document"
        assert block["source"]["type"] == "text"
        assert block["source"]["data"] == "Café notes"

    def test_docx_text_is_extracted(self):
        block = file_block(_ref(_docx_bytes(), DOCX_MIME_TYPE, "reqs.docx"))

        text = block["source"]["data"]
        assert "Checkout must support Apple Pay." in text
        assert "Owner | Payments team" in text

    def test_broken_docx_is_skipped(self):
        assert file_block(_ref(b"not a zip", None, "broken.docx")) is None

    def test_binary_unknown_type_is_skipped(self):
        assert file_block(_ref(b"\xff\xfe\x00\x81", "application/octet-stream", "x.bin")) is None

    def test_unreadable_file_is_skipped_in_batch(self):
        bad = ReferenceFile(name="bad.txt", mime_type="text/plain", original_size=1, payload="!!")
        good = _ref(b"ok", "text/plain", "good.txt")

        blocks = file_blocks([bad, good])

        assert len(blocks) == 1
        assert blocks[0]["title"] == "good.txt"


class TestBuildContext:
    def _answers(self):
        return [
            Answer(question_id=0, question_text="What is the project scope?", text="Checkout only"),
        ]

    def test_prompt_sections(self):
        project = Project(name="Checkout Redesign", description="Rebuild the checkout flow")
        prompt = build_prompt(
            project,
            Template.for_type(DocType.BRD),
            self._answers(),
            grounding="### EXTERNAL RESEARCH (Web Search):\nPCI DSS applies.",
            has_files=True,
        )

        assert prompt.startswith(f"Create a professional {DocType.BRD.value} document.")
        assert "Project Name: Checkout Redesign" in prompt
        assert "## Reference Files" in prompt
        assert "PCI DSS applies." in prompt
        assert "**Q: What is the project scope?**\n**User Input:** Checkout only" in prompt
        assert prompt.index("## External Research Context") < prompt.index(
            "## Stakeholder Interview"
        )

    def test_optional_sections_omitted(self):
        project = Project(name="Checkout Redesign")
        prompt = build_prompt(project, Template.for_type(DocType.BRD), self._answers())

        assert "## Reference Files" not in prompt
        assert "## External Research Context" not in prompt
        assert "Project Description: Not provided" in prompt

    def test_attachments_come_before_prompt(self):
        project = Project(
            name="Checkout Redesign",
            files=[
                _ref(b"%PDF-1.4", "application/pdf", "a.pdf"),
                _ref(b"notes", "text/plain", "b.txt"),
            ],
        )

        payload = build_context(project, Template.for_type(DocType.SRS), self._answers())

        assert payload.system == SYSTEM_PROMPT
        assert [b["type"] for b in payload.content] == ["document", "document", "text"]
        assert payload.content[0]["title"] == "a.pdf"
        assert payload.prompt == payload.content[-1]["text"]
        assert "## Reference Files" in payload.prompt
        assert payload.doc_type_name == DocType.SRS.value

    def test_custom_template_name_is_used(self):
        payload = build_context(
            Project(name="Ops"),
            Template.for_type(DocType.CUSTOM, "Vendor Scorecard"),
            [],
        )
        assert payload.prompt.startswith("Create a professional Vendor Scorecard document.")
        assert "No interview answers were provided." in payload.prompt
