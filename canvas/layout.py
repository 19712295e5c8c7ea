"""Overlap detection and repair for top-level shapes."""
from __future__ import annotations

from typing import Any, Callable

from canvas.base import LayoutReport
from validators.command import is_number

_BOX_TYPES = ("rectangle", "ellipse", "diamond", "text")


def _is_box(el: dict[str, Any]) -> bool:
    return (
        el.get("type") in _BOX_TYPES
        and not el.get("containerId")
        and all(is_number(el.get(k)) for k in ("x", "y", "width", "height"))
    )


def _too_close(a: dict[str, Any], b: dict[str, Any], gap: float) -> bool:
    return (
        a["x"] < b["x"] + b["width"] + gap
        and b["x"] < a["x"] + a["width"] + gap
        and a["y"] < b["y"] + b["height"] + gap
        and b["y"] < a["y"] + a["height"] + gap
    )


def check_and_fix(
    elements: dict[str, dict[str, Any]],
    move: Callable[[list[str], float, float], Any],
    min_gap: float,
) -> LayoutReport:
    """Push the lower of every too-close pair of shapes down below the upper one.

    ``move`` must shift an element together with its bound elements.
    Positions are re-read after each fix, so one pass can cascade.
    """
    ids = [el_id for el_id, el in elements.items() if _is_box(el)]
    issues: list[str] = []
    fixed = 0

    for i, first_id in enumerate(ids):
        for second_id in ids[i + 1:]:
            first, second = elements[first_id], elements[second_id]
            if not _too_close(first, second, min_gap):
                continue

            issues.append(f"{first_id} and {second_id} are closer than {min_gap:g}px")
            upper, lower = (first, second) if first["y"] <= second["y"] else (second, first)
            dy = upper["y"] + upper["height"] + min_gap - lower["y"]
            if dy > 0:
                move([lower["id"]], 0, dy)
                fixed += 1

    if not issues:
        return LayoutReport(has_issues=False, message="No layout issues found.")
    return LayoutReport(
        has_issues=True,
        issues=issues,
        fixed_count=fixed,
        message=f"Found {len(issues)} layout issue(s), fixed {fixed}.",
    )
