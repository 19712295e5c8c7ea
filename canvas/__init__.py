from canvas.base import (
    DeleteResult,
    ElementSummary,
    LayoutReport,
    LookupResult,
    MoveResult,
    ToolExecutor,
    UpdateResult,
)
from canvas.scene import Scene, generate_element_id

__all__ = [
    "DeleteResult",
    "ElementSummary",
    "LayoutReport",
    "LookupResult",
    "MoveResult",
    "Scene",
    "ToolExecutor",
    "UpdateResult",
    "generate_element_id",
]
