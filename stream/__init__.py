from stream.assembler import ToolCallAssembler
from stream.decoder import SSEDecoder
from stream.events import (
    ContentDelta,
    FinishSignal,
    StreamEvent,
    ThinkingDelta,
    ToolCall,
    ToolCallDelta,
)

__all__ = [
    "ContentDelta",
    "FinishSignal",
    "SSEDecoder",
    "StreamEvent",
    "ThinkingDelta",
    "ToolCall",
    "ToolCallAssembler",
    "ToolCallDelta",
]
