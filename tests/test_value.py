import math

import pytest

from fastserial.value import (
    Error,
    InvalidUtf8Error,
    NonFiniteFloatError,
    Number,
    NumberKind,
    NumberOverflowError,
    UnexpectedByteError,
    UnexpectedEofError,
    Value,
    ValueKind,
    decode_value,
    encode_value,
    from_python,
)


def u64(n):
    return Value(ValueKind.NUMBER, Number(NumberKind.U64, n))


def i64(n):
    return Value(ValueKind.NUMBER, Number(NumberKind.I64, n))


def f64(x):
    return Value(ValueKind.NUMBER, Number(NumberKind.F64, x))


# ─── whitespace and string boundaries ───────────────────────────────────────


def test_whitespace_boundary_32():
    assert decode_value(b" " * 31 + b"1").as_u64() == 1


def test_whitespace_boundary_33():
    assert decode_value(b" " * 32 + b"2").as_u64() == 2


def test_string_boundary_32():
    content = "a" * 32
    assert decode_value(f'"{content}"'.encode()).as_str() == content


def test_string_boundary_31():
    content = "b" * 31
    assert decode_value(f'"{content}"'.encode()).as_str() == content


def test_string_with_escape_near_boundary():
    text = '"' + "a" * 30 + '\\n"'
    assert decode_value(text.encode()).as_str() == "a" * 30 + "\n"


def test_multiple_chunks_of_whitespace():
    assert decode_value(b" " * 100 + b"5").as_u64() == 5


def test_long_string_with_escape_after_window():
    text = "x" * 500 + '\\"' + "y" * 10
    assert decode_value(f'"{text}"'.encode()).as_str() == "x" * 500 + '"' + "y" * 10


# ─── Number ─────────────────────────────────────────────────────────────────


def test_number_conversions():
    assert Number(NumberKind.U64, 5).as_i64() == 5
    assert Number(NumberKind.U64, 2**63).as_i64() is None
    assert Number(NumberKind.I64, -1).as_u64() is None
    assert Number(NumberKind.I64, 7).as_u64() == 7
    assert Number(NumberKind.U64, 3).as_f64() == 3.0
    assert Number(NumberKind.F64, 1.5).as_u64() is None
    assert Number(NumberKind.F64, 1.5).as_i64() is None


def test_number_range_checks():
    with pytest.raises(NumberOverflowError):
        Number(NumberKind.U64, -1)
    with pytest.raises(NumberOverflowError):
        Number(NumberKind.I64, 2**63)
    with pytest.raises(TypeError):
        Number(NumberKind.U64, 1.5)


def test_number_kinds_are_distinct():
    assert Number(NumberKind.U64, 1) != Number(NumberKind.I64, 1)


# ─── Value accessors ────────────────────────────────────────────────────────


def test_predicates():
    assert Value(ValueKind.NULL).is_null()
    assert Value(ValueKind.BOOL, True).is_bool()
    assert u64(1).is_number()
    assert Value(ValueKind.STRING, "s").is_string()
    assert Value(ValueKind.ARRAY, []).is_array()
    assert Value(ValueKind.OBJECT, {}).is_object()
    assert not Value(ValueKind.NULL).is_bool()


def test_accessors():
    assert Value(ValueKind.BOOL, False).as_bool() is False
    assert Value(ValueKind.STRING, "s").as_bool() is None
    assert i64(-4).as_i64() == -4
    assert i64(-4).as_u64() is None
    assert f64(2.5).as_f64() == 2.5
    assert Value(ValueKind.STRING, "hi").as_str() == "hi"
    assert u64(1).as_str() is None
    assert Value(ValueKind.ARRAY, [u64(1)]).as_array() == [u64(1)]
    assert Value(ValueKind.OBJECT, {"a": u64(1)}).as_object() == {"a": u64(1)}
    assert Value(ValueKind.NULL).as_object() is None


def test_value_type_checks():
    with pytest.raises(TypeError):
        Value(ValueKind.BOOL, 1)
    with pytest.raises(TypeError):
        Value(ValueKind.OBJECT, {1: u64(1)})


# ─── from_python ────────────────────────────────────────────────────────────


def test_from_python_kinds():
    assert from_python(None) == Value(ValueKind.NULL)
    assert from_python(True) == Value(ValueKind.BOOL, True)
    assert from_python(3) == u64(3)
    assert from_python(-3) == i64(-3)
    assert from_python(2.5) == f64(2.5)
    assert from_python(("a",)) == Value(ValueKind.ARRAY, [Value(ValueKind.STRING, "a")])


def test_from_python_errors():
    with pytest.raises(NumberOverflowError):
        from_python(2**64)
    with pytest.raises(NumberOverflowError):
        from_python(-(2**63) - 1)
    with pytest.raises(TypeError):
        from_python({1: 2})
    with pytest.raises(TypeError):
        from_python(object())


# ─── encoding ───────────────────────────────────────────────────────────────


def test_encode_compact_with_sorted_keys():
    value = from_python({"b": 1, "a": [True, None], "c": -2})
    assert value.encode() == b'{"a":[true,null],"b":1,"c":-2}'
    assert encode_value({"k": "v"}) == b'{"k":"v"}'


def test_encode_empty_containers():
    assert encode_value([]) == b"[]"
    assert encode_value({}) == b"{}"


def test_encode_string_escapes():
    assert encode_value('a"b\\\n\r\t\x01') == b'"a\\"b\\\\\\n\\r\\t\\u0001"'


def test_encode_unicode_passthrough():
    assert encode_value("é🚀") == '"é🚀"'.encode("utf-8")


@pytest.mark.parametrize(
    ("number", "text"),
    [
        (1.5, b"1.5"),
        (5.0, b"5.0"),
        (1e300, b"1e300"),
        (1e-7, b"1e-7"),
        (0.00001, b"0.00001"),
        (123.456, b"123.456"),
        (1e16, b"1e16"),
        (-0.0, b"-0.0"),
        (-2.25, b"-2.25"),
    ],
)
def test_encode_floats(number, text):
    assert encode_value(number) == text


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_encode_non_finite_fails(bad):
    with pytest.raises(NonFiniteFloatError):
        encode_value(bad)


# ─── display ────────────────────────────────────────────────────────────────


def test_display():
    assert str(from_python({"x": [1, -1, 2.0, "q\x02"]})) == '{"x":[1,-1,2.0,"q\\u0002"]}'
    assert str(f64(-0.0)) == "0.0"
    assert str(f64(math.nan)) == "NaN"
    assert str(f64(-math.inf)) == "-inf"
    assert str(f64(0.1)) == "0.1"


# ─── decoding ───────────────────────────────────────────────────────────────


def test_decode_number_kinds():
    assert decode_value(b"42") == u64(42)
    assert decode_value(b"-123") == i64(-123)
    assert decode_value(b"1.5") == f64(1.5)
    assert decode_value(b"18446744073709551615").as_u64() == 2**64 - 1
    assert decode_value(b"-9223372036854775808").as_i64() == -(2**63)


def test_decode_floats():
    assert decode_value(b"3.125").as_f64() == 3.125
    assert decode_value(b"1.5e10").as_f64() == 1.5e10
    assert decode_value(b"2.5E3").as_f64() == 2500.0
    assert decode_value(b"1.5e+3").as_f64() == 1500.0
    assert decode_value(b"1e2") == f64(100.0)


def test_decode_integer_overflow():
    with pytest.raises(NumberOverflowError):
        decode_value(b"18446744073709551616")
    with pytest.raises(NumberOverflowError):
        decode_value(b"-9223372036854775809")


def test_decode_literals_and_containers():
    assert decode_value(b" true ") == Value(ValueKind.BOOL, True)
    assert decode_value(b"false") == Value(ValueKind.BOOL, False)
    assert decode_value(b"null").is_null()
    assert decode_value(b"[ 1 , 2 , 3 ]") == from_python([1, 2, 3])
    assert decode_value(b'{ "a" : [ ] , "b" : { } }') == from_python({"a": [], "b": {}})


def test_decode_duplicate_key_keeps_last():
    assert decode_value(b'{"a":1,"a":2}') == from_python({"a": 2})


def test_decode_string_escapes():
    assert decode_value(rb'"hello\/world"').as_str() == "hello/world"
    assert decode_value(rb'"a\bb\fc"').as_str() == "a\x08b\x0cc"
    assert decode_value(rb'"\u2764\ufe0f"').as_str() == "❤️"
    assert decode_value(rb'"\ud83d\ude80"').as_str() == "🚀"


def test_decode_accepts_str_input():
    assert decode_value('["é"]') == from_python(["é"])


@pytest.mark.parametrize(
    "document",
    [
        None,
        {"id": 1, "name": "test", "tags": ["a", "b"], "score": 95.5, "ok": False},
        [[1, 2], [3, [4, None]]],
        "Line 1\nLine 2\tTabbed\r\"Quotes\"\\Backslash\x00",
        "Emoji: 🦀, Japanese: こんにちは",
        -9223372036854775808,
        1e-300,
    ],
)
def test_roundtrip(document):
    value = from_python(document)
    assert decode_value(value.encode()) == value


def test_roundtrip_large_array():
    value = from_python(list(range(10000)))
    assert decode_value(encode_value(value)) == value


@pytest.mark.parametrize("document", [b"", b"abc", b"\xff\xfe", b"truuu", b"[1, 2, {]"])
def test_decode_unexpected_byte(document):
    with pytest.raises(UnexpectedByteError):
        decode_value(document)


@pytest.mark.parametrize(
    "document", [b"42 extra", b'"hello" extra', b"true false", b"1.2.3", b"1.e5", b"[1,]", b'{"a":1,}']
)
def test_decode_rejects_malformed(document):
    with pytest.raises(Error):
        decode_value(document)


def test_decode_invalid_utf8():
    with pytest.raises(InvalidUtf8Error):
        decode_value(b'"\xff"')
    with pytest.raises(InvalidUtf8Error):
        decode_value(rb'"\udc00"')


def test_error_details():
    with pytest.raises(UnexpectedByteError) as caught:
        decode_value(b"  x")
    assert caught.value.got == ord("x")
    assert caught.value.offset == 2
    assert caught.value.expected == "value"