import json

import pytest

from canvas import Scene
from tools import TOOL_DEFINITIONS, dispatch_tool, serialize_result


@pytest.fixture
def scene():
    s = Scene()
    s.apply_commands([
        {"id": "r1", "type": "rectangle", "x": 100, "y": 100, "width": 120, "height": 60},
        {"id": "r2", "type": "rectangle", "x": 400, "y": 100, "width": 120, "height": 60},
    ])
    return s


def test_every_registered_tool_dispatches(scene):
    for tool in TOOL_DEFINITIONS:
        result = dispatch_tool(tool["name"], '{"ids":["r1"],"dx":0,"dy":0,"elements":[{"id":"r1"}]}', scene)
        assert "Unknown tool" not in result.get("error", "")


def test_unknown_tool():
    assert dispatch_tool("paint", "{}", Scene()) == {"error": "Unknown tool: paint"}


def test_get_canvas_elements(scene):
    result = dispatch_tool("get_canvas_elements", "", scene)
    assert result["message"] == "The canvas has 2 element(s)."
    assert [el["id"] for el in result["elements"]] == ["r1", "r2"]


def test_get_canvas_elements_empty():
    assert dispatch_tool("get_canvas_elements", "{}", Scene()) == {"message": "The canvas is empty."}


def test_get_elements_by_ids(scene):
    result = dispatch_tool("get_elements_by_ids", '{"ids":["r2","zz"]}', scene)
    assert result["message"] == "Found 1 element(s)"
    assert result["notFound"] == ["zz"]


def test_delete_elements(scene):
    result = dispatch_tool("delete_elements", '{"ids":["r1"]}', scene)
    assert result == {"message": "Deleted 1 element(s)", "deleted": ["r1"]}
    assert "r1" not in scene


def test_delete_nothing_matched(scene):
    result = dispatch_tool("delete_elements", '{"ids":["zz"]}', scene)
    assert result == {"message": "No matching elements to delete", "notFound": ["zz"]}


def test_update_elements(scene):
    result = dispatch_tool("update_elements", '{"elements":[{"id":"r1","text":"Hi"}]}', scene)
    assert result["updated"] == ["r1"]
    assert scene.get_elements_by_ids(["r1"]).elements[0].text == "Hi"


def test_move_elements(scene):
    result = dispatch_tool("move_elements", '{"ids":["r2"],"dx":-50,"dy":25}', scene)
    assert result["message"] == "Moved 1 element(s)"
    moved = scene.get_elements_by_ids(["r2"]).elements[0]
    assert (moved.x, moved.y) == (350, 125)


def test_check_and_fix_layout(scene):
    result = dispatch_tool("check_and_fix_layout", "", scene)
    assert result == {
        "message": "No layout issues found.",
        "hasIssues": False,
        "issues": [],
        "fixedCount": 0,
    }


@pytest.mark.parametrize(
    "name, arguments, error",
    [
        ("delete_elements", '{"ids":', "Failed to parse arguments"),
        ("delete_elements", "[1, 2]", "Failed to parse arguments"),
        ("delete_elements", '{"ids":[]}', "Provide a non-empty array of element ids to delete"),
        ("get_elements_by_ids", "{}", "Provide a non-empty array of element ids to look up"),
        ("move_elements", '{"ids":["r1"],"dx":"5","dy":0}', "Provide numeric offsets dx and dy"),
        ("update_elements", '{"elements":[]}', "Provide a non-empty array of elements to update"),
        ("update_elements", '{"elements":[{"text":"x"}]}', "Every element to update must include an id"),
        ("check_and_fix_layout", '{"min_gap":"wide"}', "min_gap must be a number"),
    ],
)
def test_argument_errors_become_error_results(scene, name, arguments, error):
    result = dispatch_tool(name, arguments, scene)
    assert result["error"].startswith(error)
    assert len(scene) == 2


def test_serialize_result_keeps_unicode():
    assert json.loads(serialize_result({"message": "café"})) == {"message": "café"}
    assert "café" in serialize_result({"message": "café"})


def test_update_rejects_non_string_id(scene):
    result = dispatch_tool("update_elements", '{"elements":[{"id":{"a":1}}]}', scene)
    assert result == {"error": "Every element to update must include an id"}


def test_update_rejects_non_numeric_geometry(scene):
    result = dispatch_tool("update_elements", '{"elements":[{"id":"r1","x":"10"}]}', scene)
    assert result == {"error": "Element r1 has non-numeric x"}
    assert scene.get_elements_by_ids(["r1"]).elements[0].x == 100


def test_move_skips_element_with_non_numeric_position():
    scene = Scene([
        {"id": "ok", "type": "rectangle", "x": 0, "y": 0, "width": 10, "height": 10},
        {"id": "odd", "type": "rectangle", "x": "10", "y": 0, "width": 10, "height": 10},
    ])

    result = dispatch_tool("move_elements", '{"ids":["ok","odd"],"dx":5,"dy":5}', scene)
    assert result["moved"] == ["ok"]
    assert {el["id"]: el["x"] for el in scene.elements()} == {"ok": 5, "odd": "10"}


class _BrokenExecutor(Scene):
    def get_canvas_elements(self):
        raise ValueError("canvas unavailable")


def test_executor_errors_become_error_results():
    result = dispatch_tool("get_canvas_elements", "", _BrokenExecutor())
    assert result == {"error": "Tool get_canvas_elements failed: canvas unavailable"}
