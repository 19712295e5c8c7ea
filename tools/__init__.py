from tools.implementations import dispatch_tool, serialize_result
from tools.registry import TOOL_DEFINITIONS

__all__ = ["TOOL_DEFINITIONS", "dispatch_tool", "serialize_result"]
