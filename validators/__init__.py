from validators.command import SHAPE_TYPES, CommandReport, check_command

__all__ = ["SHAPE_TYPES", "CommandReport", "check_command"]
