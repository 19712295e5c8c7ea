"""In-memory drawing scene.

Holds elements in insertion order, applies drawing commands parsed from the
model's reply, and implements the :class:`canvas.base.ToolExecutor`
operations used by tool calls.
"""
from __future__ import annotations

import copy
import logging
import random
import time
import uuid
from typing import Any, Iterable

from canvas.base import (
    DeleteResult,
    ElementSummary,
    LayoutReport,
    LookupResult,
    MoveResult,
    UpdateResult,
)
from canvas.layout import check_and_fix
from config import LAYOUT_MIN_GAP
from validators.command import SHAPE_TYPES, is_number

logger = logging.getLogger(__name__)


def generate_element_id() -> str:
    return f"el-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def default_element_props() -> dict[str, Any]:
    return {
        "angle": 0,
        "strokeColor": "#1e1e1e",
        "backgroundColor": "transparent",
        "fillStyle": "solid",
        "strokeWidth": 2,
        "roughness": 1,
        "opacity": 100,
        "seed": random.randint(0, 99_999),
        "version": 1,
        "versionNonce": random.randint(0, 999_999_999),
        "isDeleted": False,
        "groupIds": [],
        "boundElements": None,
        "updated": int(time.time() * 1000),
        "link": None,
        "locked": False,
    }


def type_specific_props(shape: str, command: dict[str, Any]) -> dict[str, Any]:
    if shape == "text":
        return {
            "fontSize": 20,
            "fontFamily": 1,
            "textAlign": "center",
            "verticalAlign": "middle",
            "baseline": 18,
            "containerId": None,
            "originalText": command.get("text") or "",
            "lineHeight": 1.25,
        }
    if shape in ("arrow", "line"):
        width = command.get("width") or 100
        height = command.get("height") or 0
        return {
            "points": command.get("points") or [[0, 0], [width, height]],
            "lastCommittedPoint": None,
            "startBinding": None,
            "endBinding": None,
            "startArrowhead": None,
            "endArrowhead": "arrow" if shape == "arrow" else None,
        }
    return {"roundness": {"type": 3}}


class Scene:
    def __init__(self, elements: Iterable[dict[str, Any]] = ()) -> None:
        self._elements: dict[str, dict[str, Any]] = {}
        for el in elements:
            self._elements[el["id"]] = copy.deepcopy(el)

    # ── Drawing commands ──────────────────────────────────────────────────────

    def apply_commands(self, commands: Iterable[dict[str, Any]]) -> tuple[list[str], list[str]]:
        """Patch existing elements and create new ones; returns (added, updated) ids."""
        added: list[str] = []
        updated: list[str] = []
        for command in commands:
            el_id = command["id"]
            existing = self._elements.get(el_id)
            if existing is not None:
                existing.update(command)
                updated.append(el_id)
                continue

            shape = command.get("type")
            if shape not in SHAPE_TYPES or not is_number(command.get("x")) or not is_number(command.get("y")):
                logger.debug("Ignoring patch for unknown element %s", el_id)
                continue

            self._elements[el_id] = {
                **default_element_props(),
                **type_specific_props(shape, command),
                **copy.deepcopy(command),
            }
            added.append(el_id)
        return added, updated

    def elements(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(el) for el in self._elements.values()]

    def clear(self) -> None:
        self._elements.clear()

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, el_id: object) -> bool:
        return el_id in self._elements

    # ── Summaries ─────────────────────────────────────────────────────────────

    def _summarize(self, el: dict[str, Any]) -> ElementSummary:
        text = el.get("text")
        if not text:
            bound_texts = [self._elements[b].get("text") for b in self._bound_ids(el, types=("text",))]
            text = next((t for t in bound_texts if t), text)
        return ElementSummary(
            id=el["id"],
            type=el.get("type", ""),
            x=el.get("x", 0),
            y=el.get("y", 0),
            width=el.get("width", 0),
            height=el.get("height", 0),
            text=text,
            stroke_color=el.get("strokeColor"),
            background_color=el.get("backgroundColor"),
            container_id=el.get("containerId"),
        )

    def _bound_ids(self, el: dict[str, Any], types: tuple[str, ...] | None = None) -> list[str]:
        bound = el.get("boundElements")
        if not isinstance(bound, list):
            return []
        return [
            b["id"]
            for b in bound
            if isinstance(b, dict)
            and b.get("id") in self._elements
            and (types is None or b.get("type") in types)
        ]

    def selection_summary(self, ids: Iterable[str]) -> list[ElementSummary]:
        """Summaries of the selected elements followed by anything bound to them."""
        seen: set[str] = set()
        result: list[ElementSummary] = []
        for el_id in ids:
            el = self._elements.get(el_id)
            if el is None:
                continue
            for member in [el_id, *self._bound_ids(el)]:
                if member not in seen:
                    seen.add(member)
                    result.append(self._summarize(self._elements[member]))
        return result

    # ── Tool executor operations ──────────────────────────────────────────────

    def get_canvas_elements(self) -> list[ElementSummary]:
        return [self._summarize(el) for el in self._elements.values()]

    def get_elements_by_ids(self, ids: list[str]) -> LookupResult:
        result = LookupResult()
        for el_id in ids:
            el = self._elements.get(el_id)
            if el is None:
                result.not_found.append(el_id)
            else:
                result.elements.append(self._summarize(el))
        return result

    def delete_elements(self, ids: list[str]) -> DeleteResult:
        to_delete: list[str] = []
        not_found: list[str] = []
        for el_id in ids:
            if el_id in self._elements:
                if el_id not in to_delete:
                    to_delete.append(el_id)
            else:
                not_found.append(el_id)

        # Text bound inside a deleted shape goes with it
        for el_id in list(to_delete):
            for bound in self._bound_ids(self._elements[el_id]):
                if bound not in to_delete:
                    to_delete.append(bound)

        for el_id in to_delete:
            del self._elements[el_id]
        for el in self._elements.values():
            if isinstance(el.get("boundElements"), list):
                el["boundElements"] = [
                    b for b in el["boundElements"]
                    if not (isinstance(b, dict) and b.get("id") in to_delete)
                ]
        return DeleteResult(deleted=to_delete, not_found=not_found)

    def update_elements(self, patches: list[dict[str, Any]]) -> UpdateResult:
        result = UpdateResult()
        for patch in patches:
            el = self._elements.get(patch.get("id"))
            if el is None:
                result.not_found.append(patch.get("id"))
                continue
            el.update({k: v for k, v in patch.items() if k != "id"})
            result.updated.append(el["id"])
        return result

    def move_elements(self, ids: list[str], dx: float, dy: float) -> MoveResult:
        to_move: list[str] = []
        not_found: list[str] = []
        for el_id in ids:
            if el_id in self._elements:
                if el_id not in to_move:
                    to_move.append(el_id)
            else:
                not_found.append(el_id)

        for el_id in list(to_move):
            for bound in self._bound_ids(self._elements[el_id]):
                if bound not in to_move:
                    to_move.append(bound)

        moved: list[str] = []
        for el_id in to_move:
            el = self._elements[el_id]
            x, y = el.get("x", 0), el.get("y", 0)
            if not is_number(x) or not is_number(y):
                logger.warning("Not moving %s: non-numeric position (%r, %r)", el_id, x, y)
                continue
            el["x"] = x + dx
            el["y"] = y + dy
            moved.append(el_id)
        return MoveResult(moved=moved, not_found=not_found)

    def check_and_fix_layout(self, min_gap: float | None = None) -> LayoutReport:
        gap = LAYOUT_MIN_GAP if min_gap is None else min_gap
        return check_and_fix(self._elements, self.move_elements, gap)
