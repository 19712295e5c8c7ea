import json

from stream import (
    ContentDelta,
    FinishSignal,
    SSEDecoder,
    ThinkingDelta,
    ToolCallDelta,
)
from stream.decoder import classify_envelope


def _data(delta=None, finish_reason=None):
    envelope = {"choices": [{"delta": delta or {}, "finish_reason": finish_reason}]}
    return f"data: {json.dumps(envelope)}\n"


def test_done_sentinel_produces_no_events():
    decoder = SSEDecoder()
    assert decoder.feed("data: [DONE]\n") == []
    assert decoder.done


def test_line_split_across_chunks():
    line = _data({"content": "Hello"})
    decoder = SSEDecoder()

    assert decoder.feed(line[:12]) == []
    assert decoder.feed(line[12:]) == [ContentDelta("Hello")]


def test_bytes_with_split_multibyte_character():
    raw = 'data: {"choices":[{"delta":{"content":"né"}}]}\n'.encode("utf-8")
    cut = raw.index("é".encode("utf-8")) + 1
    decoder = SSEDecoder()

    assert decoder.feed(raw[:cut]) == []
    assert decoder.feed(raw[cut:]) == [ContentDelta("né")]


def test_non_data_lines_and_blank_lines_are_ignored():
    decoder = SSEDecoder()
    assert decoder.feed(": keep-alive\n\nevent: message\n") == []


def test_undecodable_payload_is_skipped():
    decoder = SSEDecoder()
    events = decoder.feed('data: {"choices": [\n' + _data({"content": "ok"}))
    assert events == [ContentDelta("ok")]


def test_thinking_content_tool_and_finish_in_order():
    envelope = {
        "choices": [{
            "delta": {
                "reasoning_content": "hmm",
                "content": "Sure",
                "tool_calls": [
                    {"index": 1, "id": "call_2", "function": {"name": "move_elements", "arguments": "{"}},
                ],
            },
            "finish_reason": "tool_calls",
        }]
    }
    assert classify_envelope(envelope) == [
        ThinkingDelta("hmm"),
        ContentDelta("Sure"),
        ToolCallDelta(index=1, id="call_2", name="move_elements", arguments="{"),
        FinishSignal("tool_calls"),
    ]


def test_thinking_field_alias():
    assert classify_envelope({"choices": [{"delta": {"thinking": "plan"}}]}) == [ThinkingDelta("plan")]


def test_tool_call_without_index_defaults_to_zero():
    events = classify_envelope({"choices": [{"delta": {"tool_calls": [{"function": {"arguments": "]}"}}]}}]})
    assert events == [ToolCallDelta(index=0, arguments="]}")]


def test_envelopes_without_choices_produce_nothing():
    assert classify_envelope({"usage": {"total_tokens": 3}}) == []
    assert classify_envelope({"choices": []}) == []
    assert classify_envelope([1, 2]) == []


def test_finish_reason_is_recorded():
    decoder = SSEDecoder()
    decoder.feed(_data({"content": "x"}) + _data(finish_reason="stop"))
    assert decoder.finish_reason == "stop"


def test_flush_decodes_final_line_without_newline():
    decoder = SSEDecoder()
    assert decoder.feed(_data({"content": "tail"}).rstrip("\n")) == []
    assert decoder.flush() == [ContentDelta("tail")]
    assert decoder.flush() == []


def test_crlf_line_endings():
    decoder = SSEDecoder()
    assert decoder.feed(_data({"content": "a"}).replace("\n", "\r\n")) == [ContentDelta("a")]


def test_tool_call_id_and_name_types_are_normalized():
    events = classify_envelope({"choices": [{"delta": {"tool_calls": [
        {"index": 0, "id": 7, "function": {"name": ["delete_elements"], "arguments": "{}"}},
        {"index": 1, "id": {"x": 1}, "function": {"name": "move_elements"}},
    ]}}]})

    assert events == [
        ToolCallDelta(index=0, id="7", name=None, arguments="{}"),
        ToolCallDelta(index=1, id=None, name="move_elements"),
    ]
