"""Tests for rebuilding a message from streamed deltas."""

import pytest

from chat_gateway import (
    ReasoningChunk,
    StreamAggregator,
    StreamComplete,
    StreamDelta,
    StreamFailed,
    TextChunk,
    ToolCallFragment,
    ToolCallReady,
    ToolStatus,
    aggregate_stream,
)


def run(deltas, **kwargs):
    aggregator = StreamAggregator(**kwargs)
    events = []
    for delta in deltas:
        events.extend(aggregator.feed(delta))
    events.extend(aggregator.finish())
    return events


def completion_of(events):
    assert isinstance(events[-1], StreamComplete)
    return events[-1].message


def frag(index, **kwargs):
    return StreamDelta(tool_calls=(ToolCallFragment(index=index, **kwargs),))


class TestTextAndReasoning:

    def test_text_is_concatenated_in_arrival_order(self):
        parts = ["The", " quick", " ", "brown", " fox", " fox"]
        events = run([StreamDelta(content=p) for p in parts])

        assert completion_of(events).content == "The quick brown fox fox"
        assert [e.content for e in events if isinstance(e, TextChunk)] == parts

    def test_reasoning_shares_chunk_numbering_with_text(self):
        events = run(
            [
                StreamDelta(reasoning="think "),
                StreamDelta(reasoning="hard"),
                StreamDelta(content="Answer"),
                StreamDelta(content="!", reasoning=" more"),
            ]
        )

        chunks = [e for e in events if isinstance(e, (TextChunk, ReasoningChunk))]
        assert [c.index for c in chunks] == [0, 1, 2, 3, 4]
        # Within one delta, text is handled before reasoning
        assert isinstance(chunks[3], TextChunk)
        assert isinstance(chunks[4], ReasoningChunk)

        message = completion_of(events)
        assert message.content == "Answer!"
        assert message.reasoning_content == "think hard more"

    def test_empty_reasoning_is_omitted(self):
        message = completion_of(run([StreamDelta(content="hi")]))

        assert message.reasoning_content is None
        assert message.tool_calls == []

    def test_empty_stream_still_completes(self):
        events = run([])

        assert len(events) == 1
        message = completion_of(events)
        assert message.content == ""
        assert message.role == "assistant"


class TestToolCalls:

    def test_hello_search_scenario(self):
        events = run(
            [
                StreamDelta(content="Hel"),
                StreamDelta(content="lo"),
                frag(0, id="t1", name="search"),
                frag(0, arguments='{"q":'),
                frag(0, arguments='"cats"}'),
                StreamDelta(finish_reason="tool_calls"),
            ]
        )

        message = completion_of(events)
        assert message.content == "Hello"
        assert len(message.tool_calls) == 1
        call = message.tool_calls[0]
        assert call.id == "t1"
        assert call.name == "search"
        assert call.arguments == {"q": "cats"}
        assert call.status == ToolStatus.SUCCESS

        ready = [e for e in events if isinstance(e, ToolCallReady)]
        assert [r.tool_call for r in ready] == [call]
        # Tool call event comes before completion and after the text chunks
        assert [type(e) for e in events] == [TextChunk, TextChunk, ToolCallReady, StreamComplete]

    def test_missing_closing_brace_falls_back_to_raw(self):
        events = run(
            [
                frag(0, id="t1", name="search"),
                frag(0, arguments='{"q":'),
                frag(0, arguments='"cats"'),
                StreamDelta(finish_reason="tool_calls"),
            ]
        )

        call = completion_of(events).tool_calls[0]
        assert call.arguments == {"raw": '{"q":"cats"'}
        assert call.has_raw_arguments

    def test_non_object_json_is_wrapped_as_raw(self):
        events = run([frag(0, id="a", name="f", arguments="[1, 2]")])

        assert completion_of(events).tool_calls[0].arguments == {"raw": "[1, 2]"}

    def test_object_with_raw_field_is_not_marked(self):
        events = run([frag(0, id="a", name="echo", arguments='{"raw": "verbatim"}')])

        call = completion_of(events).tool_calls[0]
        assert call.arguments == {"raw": "verbatim"}
        assert not call.has_raw_arguments

    def test_blank_arguments_mean_no_arguments(self):
        events = run([frag(0, id="a", name="ping")])

        call = completion_of(events).tool_calls[0]
        assert call.arguments == {}
        assert not call.has_raw_arguments

    def test_last_non_empty_name_wins(self):
        events = run(
            [
                frag(0, id="a", name="first"),
                frag(0, name=""),
                frag(0, name="second"),
                frag(0, name=None, arguments="{}"),
            ]
        )

        assert completion_of(events).tool_calls[0].name == "second"

    def test_fragments_merge_by_index_not_arrival(self):
        events = run(
            [
                frag(1, id="b", name="beta"),
                frag(0, id="a", name="alpha"),
                frag(1, arguments='{"n": '),
                frag(0, arguments='{"m": 1}'),
                frag(1, arguments="2}"),
                StreamDelta(finish_reason="tool_calls"),
            ]
        )

        ready = [e.tool_call for e in events if isinstance(e, ToolCallReady)]
        assert [c.name for c in ready] == ["alpha", "beta"]
        assert ready[0].arguments == {"m": 1}
        assert ready[1].arguments == {"n": 2}
        assert [c.id for c in completion_of(events).tool_calls] == ["a", "b"]

    def test_missing_id_is_generated(self):
        events = run([frag(0, name="anon", arguments="{}")])

        call = completion_of(events).tool_calls[0]
        assert call.id.startswith("call_")
        assert len(call.id) > len("call_")

    def test_no_event_per_fragment(self):
        aggregator = StreamAggregator()

        assert aggregator.feed(frag(0, id="a", name="f")) == []
        assert aggregator.feed(frag(0, arguments='{"x": 1}')) == []

    def test_calls_finalized_at_end_without_boundary_are_emitted_once(self):
        events = run(
            [
                frag(0, id="a", name="f", arguments='{"x": 1}'),
                StreamDelta(finish_reason="stop"),
            ]
        )

        ready = [e for e in events if isinstance(e, ToolCallReady)]
        assert len(ready) == 1
        assert ready[0].tool_call.arguments == {"x": 1}
        assert completion_of(events).metadata["finish_reason"] == "stop"

    def test_finalization_is_idempotent(self):
        events = run(
            [
                frag(0, id="a", name="f", arguments="{}"),
                StreamDelta(finish_reason="tool_calls"),
                StreamDelta(finish_reason="tool_calls"),
            ]
        )

        assert len([e for e in events if isinstance(e, ToolCallReady)]) == 1
        assert len(completion_of(events).tool_calls) == 1

    def test_late_fragment_for_finalized_call_is_ignored(self):
        events = run(
            [
                frag(0, id="a", name="f", arguments='{"x": 1}'),
                StreamDelta(finish_reason="tool_calls"),
                frag(0, arguments="garbage"),
            ]
        )

        assert completion_of(events).tool_calls[0].arguments == {"x": 1}

    def test_argument_text_is_exact_concatenation(self):
        pieces = ['{"text": "a', "b", " c", '\\n"', "}"]
        events = run([frag(0, id="a", name="echo")] + [frag(0, arguments=p) for p in pieces])

        assert completion_of(events).tool_calls[0].arguments == {"text": "ab c\n"}


class TestTerminalEvents:

    def test_fail_emits_single_error_and_closes(self):
        aggregator = StreamAggregator()
        aggregator.feed(StreamDelta(content="partial"))
        error = RuntimeError("boom")

        events = aggregator.fail(error)

        assert len(events) == 1
        assert isinstance(events[0], StreamFailed)
        assert events[0].error is error
        assert aggregator.closed
        with pytest.raises(RuntimeError):
            aggregator.finish()

    def test_no_use_after_finish(self):
        aggregator = StreamAggregator()
        aggregator.finish()

        with pytest.raises(RuntimeError):
            aggregator.feed(StreamDelta(content="late"))
        with pytest.raises(RuntimeError):
            aggregator.fail(RuntimeError("late"))

    def test_metadata_records_model_and_usage(self):
        events = run(
            [
                StreamDelta(content="x", model="deepseek-reasoner"),
                StreamDelta(usage={"input": 3, "output": 1}),
            ]
        )

        metadata = completion_of(events).metadata
        assert metadata["model"] == "deepseek-reasoner"
        assert metadata["tokens"] == {"input": 3, "output": 1}

    def test_explicit_model_is_kept(self):
        events = run([StreamDelta(content="x", model="other")], model="requested")

        assert completion_of(events).metadata["model"] == "requested"


@pytest.mark.asyncio
async def test_aggregate_stream_helper():
    async def deltas():
        yield StreamDelta(content="a")
        yield frag(0, id="t", name="n", arguments='{"k": "v"}')
        yield StreamDelta(content="b")

    message = await aggregate_stream(deltas(), model="m")

    assert message.content == "ab"
    assert message.tool_calls[0].arguments == {"k": "v"}
    assert message.metadata["model"] == "m"
