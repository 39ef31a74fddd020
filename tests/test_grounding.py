"""Tests for best-effort external research."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from analyst_pro.chains.grounding import (
    fetch_external_context,
    needs_location_context,
    needs_research,
)


def _search_response(text: str, sources=()):
    results = [MagicMock(url=url, title=title) for title, url in sources]
    search_block = MagicMock(type="web_search_tool_result", content=results)
    text_block = MagicMock(type="text", text=text)
    response = MagicMock()
    response.content = [search_block, text_block]
    response.usage = MagicMock(input_tokens=10, output_tokens=5, cache_read_input_tokens=0)
    return response


class TestGating:
    def test_short_names_skip_research(self):
        assert needs_research("ERP") is False
        assert needs_research("CRM Migration") is True

    def test_location_keywords(self):
        assert needs_location_context("Warehouse Expansion", "") is True
        assert needs_location_context("Checkout", "New site in Leeds") is True
        assert needs_location_context("Checkout Redesign", "Web payments") is False


class TestFetchExternalContext:
    @pytest.mark.asyncio
    async def test_nothing_to_research(self):
        client = MagicMock()
        client.messages.create = AsyncMock()

        assert await fetch_external_context("ERP", "", client=client) is None
        client.messages.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_research_with_sources(self):
        client = MagicMock()
        client.messages.create = AsyncMock(
            return_value=_search_response(
                "PCI DSS 4.0 applies to card data.",
                sources=[("PCI SSC", "https://www.pcisecuritystandards.org")],
            )
        )

        context = await fetch_external_context("Checkout Redesign", "Web payments", client=client)

        assert context.startswith("### EXTERNAL RESEARCH (Web Search):\nPCI DSS 4.0")
        assert "**Sources:** [PCI SSC](https://www.pcisecuritystandards.org)" in context
        assert "LOCATION DATA" not in context
        tools = client.messages.create.call_args.kwargs["tools"]
        assert tools[0]["name"] == "web_search"

    @pytest.mark.asyncio
    async def test_location_failure_is_swallowed(self):
        client = MagicMock()
        client.messages.create = AsyncMock(
            side_effect=[_search_response("Logistics market summary."), RuntimeError("quota")]
        )

        context = await fetch_external_context(
            "Warehouse Expansion", "New site in Leeds", client=client
        )

        assert client.messages.create.await_count == 2
        assert "Logistics market summary." in context
        assert "LOCATION DATA" not in context

    @pytest.mark.asyncio
    async def test_both_calls_fail(self):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=RuntimeError("down"))

        assert await fetch_external_context("Warehouse Expansion", "", client=client) is None
