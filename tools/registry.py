_ID_LIST = {
    "type": "array",
    "items": {"type": "string"},
}

TOOL_DEFINITIONS = [
    {
        "name": "get_canvas_elements",
        "description": (
            "List every element on the canvas: shapes, text and arrows with their "
            "position, size and colors. Call this when you need to know what is "
            "already drawn before changing or extending it."
        ),
        "input_schema": {
            "type": "object",
            "properties": {},
            "required": [],
        },
    },
    {
        "name": "get_elements_by_ids",
        "description": "Fetch details for specific elements by id.",
        "input_schema": {
            "type": "object",
            "properties": {
                "ids": {**_ID_LIST, "description": "Element ids to look up."},
            },
            "required": ["ids"],
        },
    },
    {
        "name": "delete_elements",
        "description": (
            "Delete elements from the canvas. "
            "Text bound inside a deleted shape is removed with it."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "ids": {**_ID_LIST, "description": "Ids of the elements to delete."},
            },
            "required": ["ids"],
        },
    },
    {
        "name": "update_elements",
        "description": (
            "Change properties of existing elements (color, text, size, ...). "
            "Pass the id plus only the properties to change; everything else is kept. "
            "Prefer this tool when modifying existing elements."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "elements": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "string", "description": "Element id (required)."},
                            "x": {"type": "number"},
                            "y": {"type": "number"},
                            "width": {"type": "number"},
                            "height": {"type": "number"},
                            "text": {"type": "string"},
                            "strokeColor": {"type": "string"},
                            "backgroundColor": {"type": "string"},
                            "strokeWidth": {"type": "number"},
                            "strokeStyle": {"type": "string", "enum": ["solid", "dashed", "dotted"]},
                            "fillStyle": {"type": "string", "enum": ["solid", "hachure", "cross-hatch"]},
                            "opacity": {"type": "number", "description": "0-100"},
                            "fontSize": {"type": "number"},
                        },
                        "required": ["id"],
                    },
                    "description": "Elements to update; each must include its id.",
                },
            },
            "required": ["elements"],
        },
    },
    {
        "name": "move_elements",
        "description": (
            "Move elements by an offset. Text bound inside a moved shape moves with it. "
            "Use this to adjust the layout."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "ids": {**_ID_LIST, "description": "Ids of the elements to move."},
                "dx": {"type": "number", "description": "Horizontal offset, positive moves right."},
                "dy": {"type": "number", "description": "Vertical offset, positive moves down."},
            },
            "required": ["ids", "dx", "dy"],
        },
    },
    {
        "name": "check_and_fix_layout",
        "description": (
            "Detect shapes that overlap or sit closer than min_gap pixels and push "
            "them apart. Returns the issues found and how many were fixed."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "min_gap": {"type": "number", "description": "Minimum gap in pixels (default 40)."},
            },
            "required": [],
        },
    },
]
