"""Reassembly of tool invocations streamed as indexed fragments."""
from __future__ import annotations

from dataclasses import dataclass, field

from stream.events import ToolCall, ToolCallDelta


@dataclass
class ToolCallFragment:
    id: str = ""
    name: str = ""
    arguments: list[str] = field(default_factory=list)


class ToolCallAssembler:
    """Accumulates :class:`ToolCallDelta` values for a single turn.

    ``id`` and ``name`` usually arrive once, on the first fragment for an
    index; argument text arrives in arbitrary pieces and is only ever
    appended.
    """

    def __init__(self) -> None:
        self._fragments: dict[int, ToolCallFragment] = {}

    def ingest(self, delta: ToolCallDelta) -> None:
        fragment = self._fragments.setdefault(delta.index, ToolCallFragment())
        if delta.id:
            fragment.id = delta.id
        if delta.name:
            fragment.name = delta.name
        if delta.arguments:
            fragment.arguments.append(delta.arguments)

    def finalize(self) -> list[ToolCall]:
        """Executable calls in index order; fragments missing id or name are dropped."""
        return [
            ToolCall(id=frag.id, name=frag.name, arguments="".join(frag.arguments))
            for _, frag in sorted(self._fragments.items())
            if frag.id and frag.name
        ]

    def __len__(self) -> int:
        return len(self._fragments)
