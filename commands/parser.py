"""Incremental extraction of drawing commands from streamed model text.

The model writes prose with JSON objects such as::

    {"id":"box-1","type":"rectangle","x":100,"y":100,"width":150,"height":80}

interleaved. :func:`parse_drawing_commands` scans only the part of the text
past ``processed_length`` and returns the new cursor, so calling it again
with the grown text never re-emits a command. Objects that are rejected or
fail to decode still move the cursor past them.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from commands.extractor import iter_json_objects
from config import COORDINATE_LIMIT
from validators.command import check_command

logger = logging.getLogger(__name__)

DrawingCommand = dict[str, Any]


@dataclass
class ParseResult:
    commands: list[DrawingCommand]
    remaining_buffer: str
    processed_length: int


def parse_drawing_commands(
    full_text: str,
    processed_length: int = 0,
    limit: float = COORDINATE_LIMIT,
) -> ParseResult:
    commands: list[DrawingCommand] = []
    last_end = processed_length

    for obj_text, end in iter_json_objects(full_text, processed_length):
        last_end = end
        try:
            candidate = json.loads(obj_text)
        except json.JSONDecodeError:
            logger.warning("Skipping malformed drawing command: %.100s", obj_text)
            continue

        report = check_command(candidate, limit)
        if not report.valid:
            logger.warning("Rejected drawing command (%s): %.50s", report.reason, obj_text)
            continue
        for warning in report.warnings:
            logger.warning("Drawing command %s: %s", candidate["id"], warning)
        commands.append(candidate)

    return ParseResult(
        commands=commands,
        remaining_buffer=full_text[last_end:],
        processed_length=last_end,
    )


@dataclass
class CommandBuffer:
    """Accumulated model text plus the parse cursor for one reply."""

    full_text: str = ""
    processed_length: int = 0
    emitted: list[DrawingCommand] = field(default_factory=list)

    def feed(self, chunk: str) -> list[DrawingCommand]:
        self.full_text += chunk
        result = parse_drawing_commands(self.full_text, self.processed_length)
        self.processed_length = result.processed_length
        self.emitted.extend(result.commands)
        return result.commands

    @property
    def remaining(self) -> str:
        return self.full_text[self.processed_length:]
