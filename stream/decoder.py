"""Incremental decoder for ``text/event-stream`` chat-completions bodies.

Network chunks do not respect line boundaries, so the decoder keeps the
trailing partial line between :meth:`SSEDecoder.feed` calls. Each complete
``data:`` line carries one JSON envelope::

    {"choices": [{"delta": {...}, "finish_reason": ...}]}

which is classified into :mod:`stream.events` values. The ``[DONE]``
sentinel and envelopes that fail to decode produce no events.
"""
from __future__ import annotations

import codecs
import json
import logging
from typing import Any

from stream.events import (
    ContentDelta,
    FinishSignal,
    StreamEvent,
    ThinkingDelta,
    ToolCallDelta,
)

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class SSEDecoder:
    """Reframes raw chunks into lines and lines into stream events."""

    def __init__(self) -> None:
        self._buffer = ""
        self._bytes = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.finish_reason: str | None = None
        self.done = False

    def feed(self, chunk: str | bytes) -> list[StreamEvent]:
        if isinstance(chunk, bytes):
            chunk = self._bytes.decode(chunk)
        self._buffer += chunk

        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        events: list[StreamEvent] = []
        for line in lines:
            events.extend(self.decode_line(line))
        return events

    def flush(self) -> list[StreamEvent]:
        """Decode whatever is left once the body has ended."""
        tail = self._buffer + self._bytes.decode(b"", final=True)
        self._buffer = ""
        if not tail.strip():
            return []
        return self.decode_line(tail)

    def decode_line(self, line: str) -> list[StreamEvent]:
        trimmed = line.strip()
        if not trimmed.startswith(DATA_PREFIX):
            return []

        data = trimmed[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            self.done = True
            return []

        try:
            envelope = json.loads(data)
        except json.JSONDecodeError:
            # Usually an envelope truncated by network buffering.
            logger.debug("Skipping undecodable stream payload: %.80s", data)
            return []

        events = classify_envelope(envelope)
        for event in events:
            if isinstance(event, FinishSignal):
                self.finish_reason = event.reason
        return events


def classify_envelope(envelope: Any) -> list[StreamEvent]:
    """Split one decoded envelope into thinking, content, tool and finish events."""
    if not isinstance(envelope, dict):
        return []
    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return []

    choice = choices[0]
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        delta = {}

    events: list[StreamEvent] = []

    thinking = delta.get("reasoning_content") or delta.get("thinking")
    if isinstance(thinking, str) and thinking:
        events.append(ThinkingDelta(thinking))

    content = delta.get("content")
    if isinstance(content, str) and content:
        events.append(ContentDelta(content))

    tool_calls = delta.get("tool_calls")
    if isinstance(tool_calls, list):
        for tc in tool_calls:
            if isinstance(tc, dict):
                events.append(_tool_call_delta(tc))

    finish_reason = choice.get("finish_reason")
    if isinstance(finish_reason, str) and finish_reason:
        events.append(FinishSignal(finish_reason))

    return events


def _tool_call_delta(tc: dict) -> ToolCallDelta:
    index = tc.get("index")
    function = tc.get("function") if isinstance(tc.get("function"), dict) else {}
    arguments = function.get("arguments")
    call_id = tc.get("id")
    if isinstance(call_id, int) and not isinstance(call_id, bool):
        call_id = str(call_id)
    name = function.get("name")
    return ToolCallDelta(
        index=index if isinstance(index, int) else 0,
        id=call_id if isinstance(call_id, str) and call_id else None,
        name=name if isinstance(name, str) and name else None,
        arguments=arguments if isinstance(arguments, str) else "",
    )
