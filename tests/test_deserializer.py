import io
import math

import pytest

from tagjson.deserializer import Deserializer, from_reader, from_slice, from_str
from tagjson.errors import Category, ErrorCode, JsonError


def _code(text):
    with pytest.raises(JsonError) as info:
        from_str(text)
    return info.value


def _nesting_levels(value):
    levels = 0
    while value:
        assert len(value) == 1
        value = value[0]
        levels += 1
    assert value == []
    return levels


def test_parses_nested_document():
    text = '{"a": [1, 2.5, "x", true, false, null], "b": {"c": -3}}'
    assert from_str(text) == {
        "a": [1, 2.5, "x", True, False, None],
        "b": {"c": -3},
    }


def test_empty_containers():
    assert from_str("[]") == []
    assert from_str("{}") == {}
    assert from_str(" [ { } , [ ] ] ") == [{}, []]


def test_duplicate_keys_keep_last_value():
    assert from_str('{"k": 1, "k": 2}') == {"k": 2}


def test_integer_limits():
    assert from_str("18446744073709551615") == 2**64 - 1
    big = from_str("18446744073709551616")
    assert isinstance(big, float)
    assert big == float(2**64)


def test_negative_zero_is_float():
    value = from_str("-0")
    assert value == 0.0
    assert math.copysign(1.0, value) == -1.0


def test_number_out_of_range():
    err = _code("1e400")
    assert err.code is ErrorCode.NUMBER_OUT_OF_RANGE
    assert err.line == 1


@pytest.mark.parametrize(
    "text, code, column",
    [
        ("[ ", ErrorCode.EOF_WHILE_PARSING_LIST, 2),
        ("[1,", ErrorCode.EOF_WHILE_PARSING_VALUE, 3),
        ("[1,]", ErrorCode.TRAILING_COMMA, 4),
        ("[1 2]", ErrorCode.EXPECTED_LIST_COMMA_OR_END, 4),
        ("[]a", ErrorCode.TRAILING_CHARACTERS, 3),
        ('{"a" 1', ErrorCode.EXPECTED_COLON, 6),
    ],
)
def test_error_positions(text, code, column):
    err = _code(text)
    assert err.code is code
    assert (err.line, err.column) == (1, column)


def test_error_message_includes_position():
    err = _code("[1,]")
    assert str(err) == f"trailing comma at line {err.line} column {err.column}"


def test_error_on_later_line():
    err = _code("[\n1,\n]")
    assert err.code is ErrorCode.TRAILING_COMMA
    assert err.line == 3


@pytest.mark.parametrize(
    "text, code",
    [
        ("", ErrorCode.EOF_WHILE_PARSING_VALUE),
        ("{", ErrorCode.EOF_WHILE_PARSING_OBJECT),
        ("{1", ErrorCode.KEY_MUST_BE_A_STRING),
        ('{"a":', ErrorCode.EOF_WHILE_PARSING_VALUE),
        ('{"a":1 1', ErrorCode.EXPECTED_OBJECT_COMMA_OR_END),
        ('{"a":1,}', ErrorCode.TRAILING_COMMA),
        ("[,1]", ErrorCode.EXPECTED_SOME_VALUE),
        ("nul", ErrorCode.EOF_WHILE_PARSING_VALUE),
        ("nulx", ErrorCode.EXPECTED_SOME_IDENT),
        ("tru e", ErrorCode.EXPECTED_SOME_IDENT),
        ("@", ErrorCode.EXPECTED_SOME_VALUE),
        ("01", ErrorCode.INVALID_NUMBER),
        ("1 2", ErrorCode.TRAILING_CHARACTERS),
    ],
)
def test_syntax_errors(text, code):
    err = _code(text)
    assert err.code is code


def test_eof_errors_are_classified_as_eof():
    err = _code('["abc')
    assert err.code is ErrorCode.EOF_WHILE_PARSING_STRING
    assert err.classify() is Category.EOF
    assert err.is_eof()


def test_string_escapes():
    assert from_str(r'"a\"b\\c\/d\b\f\n\r\t"') == 'a"b\\c/d\b\f\n\r\t'
    assert from_str(r'"\u00e9"') == "\u00e9"
    assert from_str(r'"\ud83d\ude00"') == "\U0001F600"


@pytest.mark.parametrize(
    "text, code",
    [
        (r'"\q"', ErrorCode.INVALID_ESCAPE),
        (r'"\u12g4"', ErrorCode.INVALID_ESCAPE),
        (r'"\udc00"', ErrorCode.LONE_LEADING_SURROGATE_IN_HEX_ESCAPE),
        (r'"\ud800x"', ErrorCode.UNEXPECTED_END_OF_HEX_ESCAPE),
        (r'"\ud800\u0041"', ErrorCode.LONE_LEADING_SURROGATE_IN_HEX_ESCAPE),
        ('"a\nb"', ErrorCode.CONTROL_CHARACTER_WHILE_PARSING_STRING),
        ('"\\u00', ErrorCode.EOF_WHILE_PARSING_STRING),
    ],
)
def test_string_errors(text, code):
    assert _code(text).code is code


def test_invalid_utf8_in_string():
    with pytest.raises(JsonError) as info:
        from_slice(b'"\xff"')
    assert info.value.code is ErrorCode.INVALID_UNICODE_CODE_POINT


def test_from_slice_and_reader_agree_with_from_str():
    text = '{"k": [1, "two", {"three": 3.5}]}'
    expected = from_str(text)
    assert from_slice(text.encode("utf-8")) == expected
    assert from_reader(io.BytesIO(text.encode("utf-8"))) == expected
    assert from_reader(io.StringIO(text)) == expected


def test_reader_io_failure_is_io_error():
    class Broken:
        def read(self, size):
            raise OSError("disk gone")

    with pytest.raises(JsonError) as info:
        from_reader(Broken())
    assert info.value.is_io()
    assert isinstance(info.value.source, OSError)


def test_recursion_limit():
    depth_ok = 127
    assert _nesting_levels(from_str("[" * depth_ok + "]" * depth_ok)) == depth_ok - 1
    err = _code("[" * 128 + "]" * 128)
    assert err.code is ErrorCode.RECURSION_LIMIT_EXCEEDED


def test_recursion_limit_counts_objects_too():
    text = '{"a":' * 128 + "1" + "}" * 128
    assert _code(text).code is ErrorCode.RECURSION_LIMIT_EXCEEDED


def test_depth_is_restored_between_values():
    de = Deserializer.from_str(("[" * 100 + "]" * 100 + " ") * 3)
    levels = [_nesting_levels(de.parse_value()) for _ in range(3)]
    assert levels == [99, 99, 99]
    assert de.parse_whitespace() is None


def test_disable_recursion_limit():
    depth = 5000
    de = Deserializer.from_str("[" * depth + "]" * depth)
    de.disable_recursion_limit()
    value = de.parse_value()
    de.end()
    assert _nesting_levels(value) == depth - 1


def test_parse_whitespace_peeks_without_consuming():
    de = Deserializer.from_str(" \t\r\n 7")
    assert de.parse_whitespace() == ord("7")
    assert de.parse_value() == 7


def test_end_accepts_trailing_whitespace():
    de = Deserializer.from_str("[1] \n ")
    assert de.parse_value() == [1]
    de.end()
    with pytest.raises(JsonError) as info:
        bad = Deserializer.from_str("[1] x")
        bad.parse_value()
        bad.end()
    assert info.value.code is ErrorCode.TRAILING_CHARACTERS


def test_parse_string():
    de = Deserializer.from_str('  "hello"')
    assert de.parse_string() == "hello"


def test_parse_string_rejects_other_types():
    with pytest.raises(JsonError) as info:
        Deserializer.from_str("null").parse_string()
    assert info.value.is_data()
    assert info.value.message == "invalid type: null, expected a string"

    with pytest.raises(JsonError) as info:
        Deserializer.from_str("[1]").parse_string()
    assert info.value.is_data()
    assert "sequence" in info.value.message
    assert info.value.line == 1


def test_parse_string_at_eof():
    with pytest.raises(JsonError) as info:
        Deserializer.from_str("   ").parse_string()
    assert info.value.code is ErrorCode.EOF_WHILE_PARSING_VALUE


def test_ignore_value_skips_exactly_one_value():
    de = Deserializer.from_str('{"a": [1, {"b": null}, -2.5e3], "c": "d"} 7')
    de.ignore_value()
    assert de.parse_value() == 7
    de.end()


def test_ignore_value_skips_scalars():
    de = Deserializer.from_str('true "x\\n" -0.5 [] null')
    for _ in range(4):
        de.ignore_value()
    assert de.parse_value() is None


@pytest.mark.parametrize(
    "text, code",
    [
        ("[1 2]", ErrorCode.EXPECTED_LIST_COMMA_OR_END),
        ('{"a": 1 "b": 2}', ErrorCode.EXPECTED_OBJECT_COMMA_OR_END),
        ("{1: 2}", ErrorCode.KEY_MUST_BE_A_STRING),
        ('{"a" 1}', ErrorCode.EXPECTED_COLON),
        ("[1,", ErrorCode.EOF_WHILE_PARSING_VALUE),
        ("[1", ErrorCode.EOF_WHILE_PARSING_LIST),
        ('{"a": 1', ErrorCode.EOF_WHILE_PARSING_OBJECT),
        ("1.", ErrorCode.INVALID_NUMBER),
        ("[,]", ErrorCode.EXPECTED_SOME_VALUE),
        ("", ErrorCode.EOF_WHILE_PARSING_VALUE),
    ],
)
def test_ignore_value_errors(text, code):
    with pytest.raises(JsonError) as info:
        Deserializer.from_str(text).ignore_value()
    assert info.value.code is code


def test_constructor_wraps_raw_sources():
    assert Deserializer(b"[true]").parse_value() == [True]
    assert Deserializer("false").parse_value() is False