from stream import ToolCall, ToolCallAssembler, ToolCallDelta


def test_fragments_at_same_index_join_into_one_call():
    assembler = ToolCallAssembler()
    assembler.ingest(ToolCallDelta(index=0, id="call_1", name="delete_elements", arguments='{"ids":["a"'))
    assembler.ingest(ToolCallDelta(index=0, arguments="]}"))

    assert assembler.finalize() == [
        ToolCall(id="call_1", name="delete_elements", arguments='{"ids":["a"]}')
    ]


def test_piece_count_does_not_change_arguments():
    arguments = '{"ids":["r1","r2"],"dx":10,"dy":-5}'

    whole = ToolCallAssembler()
    whole.ingest(ToolCallDelta(index=0, id="c", name="move_elements", arguments=arguments))

    pieces = ToolCallAssembler()
    pieces.ingest(ToolCallDelta(index=0, id="c", name="move_elements"))
    for char in arguments:
        pieces.ingest(ToolCallDelta(index=0, arguments=char))

    assert pieces.finalize() == whole.finalize()


def test_calls_are_returned_in_index_order():
    assembler = ToolCallAssembler()
    assembler.ingest(ToolCallDelta(index=2, id="c3", name="check_and_fix_layout"))
    assembler.ingest(ToolCallDelta(index=0, id="c1", name="get_canvas_elements"))
    assembler.ingest(ToolCallDelta(index=1, id="c2", name="delete_elements", arguments='{"ids":[]}'))

    assert [tc.id for tc in assembler.finalize()] == ["c1", "c2", "c3"]
    assert len(assembler) == 3


def test_fragments_missing_id_or_name_are_dropped():
    assembler = ToolCallAssembler()
    assembler.ingest(ToolCallDelta(index=0, name="delete_elements", arguments="{}"))
    assembler.ingest(ToolCallDelta(index=1, id="c2", arguments="{}"))
    assembler.ingest(ToolCallDelta(index=2, id="c3", name="get_canvas_elements"))

    assert assembler.finalize() == [ToolCall(id="c3", name="get_canvas_elements", arguments="")]


def test_late_id_and_name_are_kept():
    assembler = ToolCallAssembler()
    assembler.ingest(ToolCallDelta(index=0, arguments="{}"))
    assembler.ingest(ToolCallDelta(index=0, id="late", name="get_canvas_elements"))

    assert assembler.finalize() == [ToolCall(id="late", name="get_canvas_elements", arguments="{}")]


def test_to_message_shape():
    call = ToolCall(id="c1", name="get_canvas_elements", arguments="{}")
    assert call.to_message() == {
        "id": "c1",
        "type": "function",
        "function": {"name": "get_canvas_elements", "arguments": "{}"},
    }
