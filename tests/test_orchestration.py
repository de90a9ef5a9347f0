"""Tests for the tool-augmented reply graph."""

import pytest

from conftest import FakeProvider, tool_call_response
from supportdesk.errors import ProviderRateLimitError
from supportdesk.graphs.edges import next_phase
from supportdesk.graphs.orchestration import LLMOrchestrator
from supportdesk.models.llm import GenerateOptions, LLMResponse, ToolCall
from supportdesk.services.llm import LLMService
from supportdesk.tools import create_default_registry

FINAL = LLMResponse(text='{"answer": "Booked!", "proposed_actions": ["Add to calendar"]}')

BOOKING = {
    "customerName": "Jane Doe",
    "customerEmail": "jane@example.com",
    "preferredDate": "2999-01-04",
    "preferredTime": "10:00",
    "serviceType": "device_setup",
    "notes": None,
}


class FailingProvider(FakeProvider):
    async def continue_with_tool_results(self, *args, **kwargs):
        raise ProviderRateLimitError("Rate limit exceeded. Please try again later.")


class TestNextPhase:
    """Tests for the routing decision after a provider response."""

    def test_no_tool_calls_is_final(self):
        assert next_phase(LLMResponse(text="hi"), 1, 5) == "done"

    def test_tool_calls_below_ceiling(self):
        assert next_phase(tool_call_response(("c", "t", {})), 4, 5) == "awaiting_tool_execution"

    def test_tool_calls_at_ceiling(self):
        """Test pending tool calls are abandoned at the ceiling."""
        assert next_phase(tool_call_response(("c", "t", {})), 5, 5) == "done"


class TestLLMOrchestrator:
    """Tests for the generate, execute, continue loop."""

    @pytest.mark.asyncio
    async def test_plain_answer_single_round_trip(self):
        """Test a response without tool calls ends the loop immediately."""
        provider = FakeProvider([FINAL])
        orchestrator = LLMOrchestrator(provider, create_default_registry())

        result = await orchestrator.run([], "Hi", GenerateOptions(max_tokens=1000, temperature=0.7))

        assert result.answer == "Booked!"
        assert result.proposed_actions == ["Add to calendar"]
        assert result.tool_calls is None
        assert [c["kind"] for c in provider.calls] == ["generate"]
        assert provider.calls[0]["options"].max_tokens == 1000

    @pytest.mark.asyncio
    async def test_tool_round_trip(self):
        """Test tool calls are executed and their results sent back."""
        provider = FakeProvider([tool_call_response(("call_1", "schedule_appointment", BOOKING)), FINAL])
        orchestrator = LLMOrchestrator(provider, create_default_registry())

        result = await orchestrator.run([], "Book a device setup")

        assert result.answer == "Booked!"
        assert result.tool_calls == [ToolCall(id="call_1", name="schedule_appointment", arguments=BOOKING)]

        continuation = provider.calls[1]
        assert continuation["kind"] == "continue"
        assert continuation["previous_response"].tool_calls[0].id == "call_1"
        assert len(continuation["tool_results"]) == 1
        assert continuation["tool_results"][0].tool_call_id == "call_1"
        assert continuation["tool_results"][0].success

    @pytest.mark.asyncio
    async def test_results_keep_call_order(self):
        """Test several calls in one response produce results in the same order."""
        provider = FakeProvider(
            [
                tool_call_response(
                    ("a", "schedule_appointment", BOOKING),
                    ("b", "unknown_tool", {}),
                    ("c", "schedule_appointment", {**BOOKING, "preferredTime": "20:00"}),
                ),
                FINAL,
            ]
        )

        result = await LLMOrchestrator(provider, create_default_registry()).run([], "Book")

        tool_results = provider.calls[1]["tool_results"]
        assert [r.tool_call_id for r in tool_results] == ["a", "b", "c"]
        assert [r.success for r in tool_results] == [True, False, False]
        assert tool_results[1].error == "Unknown tool: unknown_tool"
        assert [c.id for c in result.tool_calls] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_only_latest_results_sent_each_round(self):
        """Test every continuation carries the results of the previous response only."""
        provider = FakeProvider(
            [
                tool_call_response(("r1", "schedule_appointment", BOOKING)),
                tool_call_response(("r2", "schedule_appointment", BOOKING)),
                FINAL,
            ]
        )

        result = await LLMOrchestrator(provider, create_default_registry()).run([], "Book twice")

        assert [c["kind"] for c in provider.calls] == ["generate", "continue", "continue"]
        assert [r.tool_call_id for r in provider.calls[1]["tool_results"]] == ["r1"]
        assert [r.tool_call_id for r in provider.calls[2]["tool_results"]] == ["r2"]
        assert [c.id for c in result.tool_calls] == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_iteration_ceiling(self):
        """Test a provider that always requests tools stops after five round-trips."""
        provider = FakeProvider(
            [tool_call_response((f"call_{i}", "schedule_appointment", BOOKING)) for i in range(10)]
        )

        result = await LLMOrchestrator(provider, create_default_registry(), max_iterations=5).run([], "Loop")

        assert len(provider.calls) == 5
        # The calls of the fifth response are never executed.
        assert [c.id for c in result.tool_calls] == ["call_0", "call_1", "call_2", "call_3"]
        assert result.answer == ""
        assert result.proposed_actions == []

    @pytest.mark.asyncio
    async def test_ceiling_of_one(self):
        """Test a ceiling of one never executes tools."""
        provider = FakeProvider([tool_call_response(("x", "schedule_appointment", BOOKING))])

        result = await LLMOrchestrator(provider, create_default_registry(), max_iterations=1).run([], "Book")

        assert len(provider.calls) == 1
        assert result.tool_calls is None

    def test_invalid_ceiling(self):
        with pytest.raises(ValueError):
            LLMOrchestrator(FakeProvider(), create_default_registry(), max_iterations=0)

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self):
        """Test a failing continuation aborts the run with the provider error."""
        provider = FailingProvider([tool_call_response(("call_1", "schedule_appointment", BOOKING))])

        with pytest.raises(ProviderRateLimitError):
            await LLMOrchestrator(provider, create_default_registry()).run([], "Book")


class TestLLMService:
    """Tests for the service facade."""

    @pytest.mark.asyncio
    async def test_plain_reply_offers_no_tools(self):
        """Test plain replies are a single tool-less round-trip returning the answer."""
        provider = FakeProvider([LLMResponse(text='{"answer": "We ship worldwide.", "proposed_actions": []}')])
        service = LLMService(provider, create_default_registry())

        answer = await service.generate_reply([], "Do you ship abroad?")

        assert answer == "We ship worldwide."
        assert provider.calls[0]["tools"] is None

    @pytest.mark.asyncio
    async def test_plain_reply_raw_text(self):
        """Test non-JSON text is returned as is."""
        provider = FakeProvider([LLMResponse(text="Just text")])

        assert await LLMService(provider, create_default_registry()).generate_reply([], "Hi") == "Just text"

    @pytest.mark.asyncio
    async def test_structured_reply_offers_tools(self):
        """Test structured replies pass the registry to the provider."""
        registry = create_default_registry()
        provider = FakeProvider([FINAL])

        await LLMService(provider, registry, max_tool_iterations=3).generate_structured_reply([], "Hi")

        assert provider.calls[0]["tools"] is registry
