from commands.extractor import has_incomplete_object, iter_json_objects


def test_yields_each_complete_object_with_absolute_end():
    text = 'hi {"a":1} mid {"b":{"c":2}} tail'
    found = list(iter_json_objects(text))

    assert [obj for obj, _ in found] == ['{"a":1}', '{"b":{"c":2}}']
    assert found[0][1] == text.index(" mid")
    assert found[1][1] == text.index(" tail")


def test_stops_at_unclosed_object():
    text = '{"a":1} {"b":2'
    assert [obj for obj, _ in iter_json_objects(text)] == ['{"a":1}']


def test_start_offset_skips_earlier_text():
    text = '{"a":1} {"b":2}'
    assert [obj for obj, _ in iter_json_objects(text, start=7)] == ['{"b":2}']


def test_braces_inside_strings_are_ignored():
    text = '{"text":"a } and { b"} after'
    assert [obj for obj, _ in iter_json_objects(text)] == ['{"text":"a } and { b"}']


def test_escaped_quote_does_not_end_string():
    text = r'{"text":"say \"}\" ok"}'
    assert [obj for obj, _ in iter_json_objects(text)] == [text]


def test_backslash_outside_string_is_plain_text():
    text = r'path \{"a":1}'
    assert [obj for obj, _ in iter_json_objects(text)] == ['{"a":1}']


def test_has_incomplete_object():
    assert has_incomplete_object('done {"id":"r1"')
    assert not has_incomplete_object('done {"id":"r1"}')
    assert not has_incomplete_object("no braces at all")
