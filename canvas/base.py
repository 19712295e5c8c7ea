from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class ElementSummary:
    id: str
    type: str
    x: float
    y: float
    width: float
    height: float
    text: str | None = None
    stroke_color: str | None = None
    background_color: str | None = None
    # Set on text bound inside a shape
    container_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "text": self.text,
            "position": {"x": self.x, "y": self.y},
            "size": {"width": self.width, "height": self.height},
            "strokeColor": self.stroke_color,
            "backgroundColor": self.background_color,
            "containerId": self.container_id,
        }


@dataclass
class LookupResult:
    elements: list[ElementSummary] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


@dataclass
class DeleteResult:
    deleted: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


@dataclass
class UpdateResult:
    updated: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


@dataclass
class MoveResult:
    moved: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


@dataclass
class LayoutReport:
    has_issues: bool
    issues: list[str] = field(default_factory=list)
    fixed_count: int = 0
    message: str = ""


class ToolExecutor(Protocol):
    """Canvas operations available to tool calls.

    Every method completes synchronously and reports unknown ids in
    ``not_found`` instead of raising.
    """

    def get_canvas_elements(self) -> list[ElementSummary]: ...

    def get_elements_by_ids(self, ids: list[str]) -> LookupResult: ...

    def delete_elements(self, ids: list[str]) -> DeleteResult: ...

    def update_elements(self, patches: list[dict[str, Any]]) -> UpdateResult: ...

    def move_elements(self, ids: list[str], dx: float, dy: float) -> MoveResult: ...

    def check_and_fix_layout(self, min_gap: float | None = None) -> LayoutReport: ...
