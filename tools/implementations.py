"""Tool implementations called by the agent loop.

Each function maps to one tool in registry.py. Arguments arrive as the raw
JSON text the model streamed; results are plain dicts that always carry either
a human-readable ``message`` (plus the ids affected) or an ``error``, and are
serialized into the ``tool`` message sent back to the model.

Argument problems are reported as ``{"error": ...}`` results rather than
raised, so the model can correct itself on the next turn.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from canvas.base import ToolExecutor
from validators.command import is_number, non_numeric_geometry

logger = logging.getLogger(__name__)


class ToolArgumentError(ValueError):
    pass


# ── Dispatcher ────────────────────────────────────────────────────────────────

def dispatch_tool(name: str, arguments: str, executor: ToolExecutor) -> dict[str, Any]:
    try:
        if name == "get_canvas_elements":
            return _get_canvas_elements(executor)
        if name == "get_elements_by_ids":
            return _get_elements_by_ids(_parse_args(arguments), executor)
        if name == "delete_elements":
            return _delete_elements(_parse_args(arguments), executor)
        if name == "update_elements":
            return _update_elements(_parse_args(arguments), executor)
        if name == "move_elements":
            return _move_elements(_parse_args(arguments), executor)
        if name == "check_and_fix_layout":
            return _check_and_fix_layout(_parse_args(arguments, allow_empty=True), executor)
    except ToolArgumentError as exc:
        return {"error": str(exc)}
    except (TypeError, ValueError) as exc:
        # Arguments that passed decoding but still broke the executor
        logger.warning("Tool %s failed: %s", name, exc)
        return {"error": f"Tool {name} failed: {exc}"}
    return {"error": f"Unknown tool: {name}"}


def serialize_result(result: dict[str, Any]) -> str:
    return json.dumps(result, ensure_ascii=False)


def _parse_args(arguments: str, allow_empty: bool = False) -> dict[str, Any]:
    if allow_empty and not arguments.strip():
        return {}
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as exc:
        raise ToolArgumentError(f"Failed to parse arguments: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ToolArgumentError("Failed to parse arguments: expected a JSON object")
    return parsed


def _require_ids(args: dict[str, Any], action: str) -> list[str]:
    ids = args.get("ids")
    if not isinstance(ids, list) or not ids:
        raise ToolArgumentError(f"Provide a non-empty array of element ids to {action}")
    return [str(i) for i in ids]


# ── Individual implementations ────────────────────────────────────────────────

def _get_canvas_elements(executor: ToolExecutor) -> dict[str, Any]:
    elements = executor.get_canvas_elements()
    if not elements:
        return {"message": "The canvas is empty."}
    return {
        "message": f"The canvas has {len(elements)} element(s).",
        "elements": [el.to_dict() for el in elements],
    }


def _get_elements_by_ids(args: dict[str, Any], executor: ToolExecutor) -> dict[str, Any]:
    ids = _require_ids(args, "look up")
    result = executor.get_elements_by_ids(ids)
    if not result.elements:
        return {"message": "No matching elements found", "notFound": result.not_found}
    out: dict[str, Any] = {
        "message": f"Found {len(result.elements)} element(s)",
        "elements": [el.to_dict() for el in result.elements],
    }
    if result.not_found:
        out["notFound"] = result.not_found
    return out


def _delete_elements(args: dict[str, Any], executor: ToolExecutor) -> dict[str, Any]:
    ids = _require_ids(args, "delete")
    result = executor.delete_elements(ids)
    if not result.deleted:
        return {"message": "No matching elements to delete", "notFound": result.not_found}
    out: dict[str, Any] = {
        "message": f"Deleted {len(result.deleted)} element(s)",
        "deleted": result.deleted,
    }
    if result.not_found:
        out["notFound"] = result.not_found
    return out


def _update_elements(args: dict[str, Any], executor: ToolExecutor) -> dict[str, Any]:
    patches = args.get("elements")
    if not isinstance(patches, list) or not patches:
        raise ToolArgumentError("Provide a non-empty array of elements to update")
    for patch in patches:
        if not isinstance(patch, dict) or not isinstance(patch.get("id"), str) or not patch["id"]:
            raise ToolArgumentError("Every element to update must include an id")
        bad = non_numeric_geometry(patch)
        if bad:
            raise ToolArgumentError(f"Element {patch['id']} has non-numeric {', '.join(bad)}")

    result = executor.update_elements(patches)
    if not result.updated:
        return {"message": "No matching elements to update", "notFound": result.not_found}
    out: dict[str, Any] = {
        "message": f"Updated {len(result.updated)} element(s)",
        "updated": result.updated,
    }
    if result.not_found:
        out["notFound"] = result.not_found
    return out


def _move_elements(args: dict[str, Any], executor: ToolExecutor) -> dict[str, Any]:
    ids = _require_ids(args, "move")
    dx, dy = args.get("dx"), args.get("dy")
    if not is_number(dx) or not is_number(dy):
        raise ToolArgumentError("Provide numeric offsets dx and dy")

    result = executor.move_elements(ids, dx, dy)
    if not result.moved:
        return {"message": "No matching elements to move", "notFound": result.not_found}
    out: dict[str, Any] = {
        "message": f"Moved {len(result.moved)} element(s)",
        "moved": result.moved,
    }
    if result.not_found:
        out["notFound"] = result.not_found
    return out


def _check_and_fix_layout(args: dict[str, Any], executor: ToolExecutor) -> dict[str, Any]:
    min_gap = args.get("min_gap")
    if min_gap is not None and not is_number(min_gap):
        raise ToolArgumentError("min_gap must be a number")

    report = executor.check_and_fix_layout(min_gap)
    return {
        "message": report.message,
        "hasIssues": report.has_issues,
        "issues": report.issues,
        "fixedCount": report.fixed_count,
    }
