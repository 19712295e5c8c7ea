from dataclasses import dataclass, field
from numbers import Real
from typing import Any

from config import COORDINATE_LIMIT

SHAPE_TYPES = ("rectangle", "ellipse", "diamond", "text", "arrow", "line")
GEOMETRY_KEYS = ("x", "y", "width", "height")


@dataclass
class CommandReport:
    valid: bool
    reason: str = ""
    warnings: list[str] = field(default_factory=list)


def is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def non_numeric_geometry(attrs: dict[str, Any]) -> list[str]:
    """Geometry keys present in ``attrs`` whose value is not a number."""
    return [key for key in GEOMETRY_KEYS if key in attrs and not is_number(attrs[key])]


def check_command(candidate: Any, limit: float = COORDINATE_LIMIT) -> CommandReport:
    """Classify a decoded drawing command as accepted or rejected.

    A command with ``type`` creates an element and needs numeric ``x``/``y``;
    one without ``type`` patches an existing element by ``id``. Either way,
    geometry that is present must be numeric.
    """
    if not isinstance(candidate, dict):
        return CommandReport(valid=False, reason="command is not an object")

    el_id = candidate.get("id")
    if not isinstance(el_id, str) or not el_id:
        return CommandReport(valid=False, reason="missing id")

    shape = candidate.get("type")
    if shape is not None and shape not in SHAPE_TYPES:
        return CommandReport(valid=False, reason=f"invalid type {shape!r}")

    x, y = candidate.get("x"), candidate.get("y")
    if shape is not None and (not is_number(x) or not is_number(y)):
        return CommandReport(valid=False, reason="creation command without numeric x/y")

    bad = non_numeric_geometry(candidate)
    if bad:
        return CommandReport(valid=False, reason=f"non-numeric {', '.join(bad)}")

    warnings = []
    if is_number(x) and is_number(y) and not (0 <= x <= limit and 0 <= y <= limit):
        warnings.append(f"coordinates ({x}, {y}) outside 0..{limit:g}")
    return CommandReport(valid=True, warnings=warnings)
