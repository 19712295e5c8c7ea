from commands.extractor import has_incomplete_object, iter_json_objects
from commands.parser import CommandBuffer, DrawingCommand, ParseResult, parse_drawing_commands

__all__ = [
    "CommandBuffer",
    "DrawingCommand",
    "ParseResult",
    "has_incomplete_object",
    "iter_json_objects",
    "parse_drawing_commands",
]
