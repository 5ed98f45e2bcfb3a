import json
import os

import pytest

from assistkit.utils.jsonutil import (
    clean_json_response,
    extract_and_validate_json_object,
    extract_json_array,
    extract_json_object,
    from_json,
    pretty_json,
    to_json,
    to_json_compact,
    validate_json,
    write_file_atomic,
)


def test_to_json_indents_two_spaces():
    assert to_json({"a": 1}) == '{\n  "a": 1\n}'


def test_to_json_compact():
    assert to_json_compact({"a": [1, 2]}) == '{"a":[1,2]}'


def test_to_json_rejects_unencodable():
    with pytest.raises(ValueError, match="marshal failed"):
        to_json({"a": object()})


def test_from_json_round_trip():
    value = {"name": "x", "items": [1, 2.5, None, True], "nested": {"k": "v"}}
    assert from_json(to_json(value)) == value
    assert from_json(to_json_compact(value)) == value


def test_from_json_invalid():
    with pytest.raises(ValueError, match="unmarshal failed"):
        from_json("{not json")


def test_validate_json_invalid():
    with pytest.raises(ValueError, match="invalid json"):
        validate_json('{"a": }')


def test_pretty_json_round_trip_and_layout():
    compact = '{"a":[1,2,{"b":"x, y: z"}],"c":{}}'
    pretty = pretty_json(compact, "")
    assert json.loads(pretty) == json.loads(compact)
    assert '"x, y: z"' in pretty
    assert '"c": {}' in pretty
    assert pretty.count("\n") > 3


def test_pretty_json_custom_indent():
    assert pretty_json('{"a":[]}', "\t") == '{\n\t"a": []\n}'


def test_pretty_json_empty_object():
    assert pretty_json("{}", "  ") == "{}"


def test_pretty_json_invalid():
    with pytest.raises(ValueError, match="indent failed"):
        pretty_json("[1,", "  ")


def test_extract_json_object_ignores_braces_in_strings():
    text = 'prefix {"a": "}", "b": {"c": 1}} tail {"other": 2}'
    assert extract_json_object(text) == '{"a": "}", "b": {"c": 1}}'


def test_extract_json_object_handles_escaped_quotes():
    text = 'x {"a": "say \\"}\\" now"} y'
    assert extract_json_object(text) == '{"a": "say \\"}\\" now"}'


def test_extract_json_object_missing():
    with pytest.raises(ValueError, match="no valid json object found"):
        extract_json_object("no object here")


def test_extract_json_array():
    text = 'answer: [1, "]", [2]] done'
    assert extract_json_array(text) == '[1, "]", [2]]'


def test_extract_json_array_missing():
    with pytest.raises(ValueError, match="no valid json array found"):
        extract_json_array("{}")


def test_extract_and_validate_json_object():
    assert extract_and_validate_json_object('ok {"a": 1} ok') == '{"a": 1}'
    with pytest.raises(ValueError):
        extract_and_validate_json_object("bad {a: 1}")


def test_clean_json_response_json_fence():
    assert clean_json_response('```json\n{"a":1}\n```') == '{"a":1}'


def test_clean_json_response_plain_fence():
    assert clean_json_response('  ```\n{"b":2}\n```  ') == '{"b":2}'


def test_clean_json_response_without_fence():
    assert clean_json_response('  {"c":3}\n') == '{"c":3}'


def test_write_file_atomic(tmp_path):
    target = tmp_path / "f.json"
    write_file_atomic(target, b'{"x": 1}', 0o600)
    assert target.read_bytes() == b'{"x": 1}'
    assert os.stat(target).st_mode & 0o777 == 0o600
    assert os.listdir(tmp_path) == ["f.json"]


def test_write_file_atomic_replaces(tmp_path):
    target = tmp_path / "data.txt"
    target.write_text("old")
    write_file_atomic(target, "new", 0o644)
    assert target.read_text() == "new"
    assert sorted(os.listdir(tmp_path)) == ["data.txt"]