"""A dynamically typed JSON value, with its encoder and decoder."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from fastserial.scan import scan_quote_or_backslash, skip_whitespace

__all__ = [
    "Error",
    "UnexpectedByteError",
    "UnexpectedEofError",
    "NumberOverflowError",
    "InvalidUtf8Error",
    "NonFiniteFloatError",
    "NumberKind",
    "Number",
    "ValueKind",
    "Value",
    "from_python",
    "encode_value",
    "decode_value",
]

_U64_MAX = 2**64 - 1
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_EXACT_INT_LIMIT = float(2**53)

# Scanners are fed bounded windows so that no call copies the whole input.
_WINDOW = 64

_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_WHITESPACE = b" \t\n\r"
_SIMPLE_ESCAPES = {
    ord('"'): b'"',
    ord("\\"): b"\\",
    ord("/"): b"/",
    ord("b"): b"\x08",
    ord("f"): b"\x0c",
    ord("n"): b"\n",
    ord("r"): b"\r",
    ord("t"): b"\t",
}
_HEX_DIGITS = b"0123456789abcdefABCDEF"

_STRING_ESCAPES: dict[int, str] = {code: f"\\u{code:04x}" for code in range(0x20)}
_STRING_ESCAPES.update(
    {
        ord('"'): '\\"',
        ord("\\"): "\\\\",
        ord("\n"): "\\n",
        ord("\r"): "\\r",
        ord("\t"): "\\t",
    }
)


class Error(ValueError):
    """Base class of every encoding and decoding failure."""


class UnexpectedByteError(Error):
    """A byte other than the one the grammar allows was found."""

    def __init__(self, expected: str, got: int, offset: int) -> None:
        super().__init__(f"expected {expected}, got byte 0x{got:02x} at offset {offset}")
        self.expected = expected
        self.got = got
        self.offset = offset


class UnexpectedEofError(Error):
    """The input ended in the middle of a value."""

    def __init__(self, expected: str, offset: int) -> None:
        super().__init__(f"unexpected end of input at offset {offset}, expected {expected}")
        self.expected = expected
        self.offset = offset


class NumberOverflowError(Error):
    """A number does not fit the integer type it is read as."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"number does not fit in {type_name}")
        self.type_name = type_name


class InvalidUtf8Error(Error):
    """A string is not valid UTF-8."""

    def __init__(self, byte_offset: int) -> None:
        super().__init__(f"invalid UTF-8 at offset {byte_offset}")
        self.byte_offset = byte_offset


class NonFiniteFloatError(Error):
    """NaN and infinities have no JSON form."""

    def __init__(self, value: float) -> None:
        super().__init__(f"cannot encode non-finite float {value!r} as JSON")
        self.value = value


class NumberKind(enum.Enum):
    U64 = "u64"
    I64 = "i64"
    F64 = "f64"


_INT_RANGES = {
    NumberKind.U64: (0, _U64_MAX),
    NumberKind.I64: (_I64_MIN, _I64_MAX),
}


@dataclass(frozen=True)
class Number:
    """A JSON number stored as an unsigned, signed or floating value."""

    kind: NumberKind
    value: int | float

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise TypeError(f"number value must be int or float, not {type(self.value).__name__}")
        if self.kind is NumberKind.F64:
            object.__setattr__(self, "value", float(self.value))
            return
        if not isinstance(self.value, int):
            raise TypeError(f"{self.kind.value} number needs an int value")
        low, high = _INT_RANGES[self.kind]
        if not low <= self.value <= high:
            raise NumberOverflowError(self.kind.value)

    def as_u64(self) -> int | None:
        if self.kind is NumberKind.U64:
            return self.value
        if self.kind is NumberKind.I64 and self.value >= 0:
            return self.value
        return None

    def as_i64(self) -> int | None:
        if self.kind is NumberKind.I64:
            return self.value
        if self.kind is NumberKind.U64 and self.value <= _I64_MAX:
            return self.value
        return None

    def as_f64(self) -> float:
        return float(self.value)


class ValueKind(enum.Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


@dataclass
class Value:
    """A JSON value: null, boolean, number, string, array or object.

    Objects keep their members in a dict and are written with keys sorted.
    """

    kind: ValueKind
    data: Any = None

    def __post_init__(self) -> None:
        kind, data = self.kind, self.data
        if kind is ValueKind.NULL:
            if data is not None:
                raise TypeError("null value carries no data")
        elif kind is ValueKind.BOOL:
            if not isinstance(data, bool):
                raise TypeError("bool value needs a bool")
        elif kind is ValueKind.NUMBER:
            if not isinstance(data, Number):
                raise TypeError("number value needs a Number")
        elif kind is ValueKind.STRING:
            if not isinstance(data, str):
                raise TypeError("string value needs a str")
        elif kind is ValueKind.ARRAY:
            if isinstance(data, tuple):
                self.data = data = list(data)
            if not isinstance(data, list) or not all(isinstance(v, Value) for v in data):
                raise TypeError("array value needs a list of Value")
        elif kind is ValueKind.OBJECT:
            if not isinstance(data, dict) or not all(
                isinstance(k, str) and isinstance(v, Value) for k, v in data.items()
            ):
                raise TypeError("object value needs a dict of str to Value")
        else:
            raise TypeError(f"unknown value kind {kind!r}")

    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def is_bool(self) -> bool:
        return self.kind is ValueKind.BOOL

    def is_number(self) -> bool:
        return self.kind is ValueKind.NUMBER

    def is_string(self) -> bool:
        return self.kind is ValueKind.STRING

    def is_array(self) -> bool:
        return self.kind is ValueKind.ARRAY

    def is_object(self) -> bool:
        return self.kind is ValueKind.OBJECT

    def as_bool(self) -> bool | None:
        return self.data if self.kind is ValueKind.BOOL else None

    def as_u64(self) -> int | None:
        return self.data.as_u64() if self.kind is ValueKind.NUMBER else None

    def as_i64(self) -> int | None:
        return self.data.as_i64() if self.kind is ValueKind.NUMBER else None

    def as_f64(self) -> float | None:
        return self.data.as_f64() if self.kind is ValueKind.NUMBER else None

    def as_str(self) -> str | None:
        return self.data if self.kind is ValueKind.STRING else None

    def as_array(self) -> list[Value] | None:
        return self.data if self.kind is ValueKind.ARRAY else None

    def as_object(self) -> dict[str, Value] | None:
        return self.data if self.kind is ValueKind.OBJECT else None

    def encode(self) -> bytes:
        """Return the compact JSON text of this value as UTF-8 bytes."""
        parts: list[str] = []
        _render(self, parts, strict=True)
        return "".join(parts).encode("utf-8")

    def __str__(self) -> str:
        parts: list[str] = []
        _render(self, parts, strict=False)
        return "".join(parts)


def _quote(text: str) -> str:
    return '"' + text.translate(_STRING_ESCAPES) + '"'


def _format_float(x: float) -> str:
    """Shortest round-tripping text, laid out as the ryu formatter does."""
    if x == 0.0:
        return "-0.0" if math.copysign(1.0, x) < 0 else "0.0"
    sign = "-" if x < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(x))).as_tuple()
    raw = "".join(map(str, digit_tuple))
    digits = raw.rstrip("0")
    exponent += len(raw) - len(digits)
    length = len(digits)
    point = length + exponent
    if exponent >= 0 and point <= 16:
        body = digits + "0" * exponent + ".0"
    elif 0 < point <= 16:
        body = digits[:point] + "." + digits[point:]
    elif -5 < point <= 0:
        body = "0." + "0" * -point + digits
    elif length == 1:
        body = f"{digits}e{point - 1}"
    else:
        body = f"{digits[0]}.{digits[1:]}e{point - 1}"
    return sign + body


def _format_number(number: Number, strict: bool) -> str:
    if number.kind is not NumberKind.F64:
        return str(number.value)
    x = number.value
    if not math.isfinite(x):
        if strict:
            raise NonFiniteFloatError(x)
        if math.isnan(x):
            return "NaN"
        return "inf" if x > 0 else "-inf"
    if not strict and x.is_integer() and abs(x) < _EXACT_INT_LIMIT:
        return f"{int(x)}.0"
    return _format_float(x)


def _render(value: Value, out: list[str], strict: bool) -> None:
    kind = value.kind
    if kind is ValueKind.NULL:
        out.append("null")
    elif kind is ValueKind.BOOL:
        out.append("true" if value.data else "false")
    elif kind is ValueKind.NUMBER:
        out.append(_format_number(value.data, strict))
    elif kind is ValueKind.STRING:
        out.append(_quote(value.data))
    elif kind is ValueKind.ARRAY:
        out.append("[")
        for index, item in enumerate(value.data):
            if index:
                out.append(",")
            _render(item, out, strict)
        out.append("]")
    else:
        out.append("{")
        for index, (key, item) in enumerate(sorted(value.data.items())):
            if index:
                out.append(",")
            out.append(_quote(key))
            out.append(":")
            _render(item, out, strict)
        out.append("}")


def from_python(obj: Any) -> Value:
    """Build a Value from None, bool, int, float, str, list, tuple or dict.

    Non-negative integers become unsigned numbers, negative ones signed.
    """
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return Value(ValueKind.NULL)
    if isinstance(obj, bool):
        return Value(ValueKind.BOOL, obj)
    if isinstance(obj, Number):
        return Value(ValueKind.NUMBER, obj)
    if isinstance(obj, int):
        kind = NumberKind.U64 if obj >= 0 else NumberKind.I64
        return Value(ValueKind.NUMBER, Number(kind, obj))
    if isinstance(obj, float):
        return Value(ValueKind.NUMBER, Number(NumberKind.F64, obj))
    if isinstance(obj, str):
        return Value(ValueKind.STRING, obj)
    if isinstance(obj, (list, tuple)):
        return Value(ValueKind.ARRAY, [from_python(item) for item in obj])
    if isinstance(obj, dict):
        members: dict[str, Value] = {}
        for key, item in obj.items():
            if not isinstance(key, str):
                raise TypeError(f"object keys must be str, not {type(key).__name__}")
            members[key] = from_python(item)
        return Value(ValueKind.OBJECT, members)
    raise TypeError(f"cannot convert {type(obj).__name__} to a JSON value")


def encode_value(value: Any) -> bytes:
    """Encode a Value, or anything from_python accepts, as compact JSON."""
    return from_python(value).encode()


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.view = memoryview(data)
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def peek(self) -> int:
        return self.data[self.pos] if self.pos < len(self.data) else 0

    def skip_whitespace(self) -> None:
        data = self.data
        while self.pos < len(data) and data[self.pos] in _WHITESPACE:
            self.pos += skip_whitespace(self.view[self.pos : self.pos + _WINDOW])

    def expect_byte(self, byte: int) -> None:
        expected = repr(chr(byte))
        if self.at_end():
            raise UnexpectedEofError(expected, self.pos)
        got = self.data[self.pos]
        if got != byte:
            raise UnexpectedByteError(expected, got, self.pos)
        self.pos += 1

    def expect_bytes(self, literal: bytes) -> None:
        end = self.pos + len(literal)
        expected = literal.decode("ascii")
        for offset in range(self.pos, min(end, len(self.data))):
            if self.data[offset] != literal[offset - self.pos]:
                raise UnexpectedByteError(expected, self.data[offset], offset)
        if end > len(self.data):
            raise UnexpectedEofError(expected, len(self.data))
        self.pos = end

    def read_value(self) -> Value:
        self.skip_whitespace()
        byte = self.peek()
        if byte == _QUOTE:
            return Value(ValueKind.STRING, self.read_string())
        if byte == ord("{"):
            return Value(ValueKind.OBJECT, self.read_object())
        if byte == ord("["):
            return Value(ValueKind.ARRAY, self.read_array())
        if byte == ord("t"):
            self.expect_bytes(b"true")
            return Value(ValueKind.BOOL, True)
        if byte == ord("f"):
            self.expect_bytes(b"false")
            return Value(ValueKind.BOOL, False)
        if byte == ord("n"):
            self.expect_bytes(b"null")
            return Value(ValueKind.NULL)
        if byte == ord("-") or 0x30 <= byte <= 0x39:
            return Value(ValueKind.NUMBER, self.read_number())
        raise UnexpectedByteError("value", byte, self.pos)

    def read_object(self) -> dict[str, Value]:
        self.pos += 1
        members: dict[str, Value] = {}
        self.skip_whitespace()
        if self.peek() == ord("}"):
            self.pos += 1
            return members
        while True:
            self.skip_whitespace()
            key = self.read_string()
            self.skip_whitespace()
            self.expect_byte(ord(":"))
            members[key] = self.read_value()
            if self.comma_or_close(ord("}")):
                return members

    def read_array(self) -> list[Value]:
        self.pos += 1
        items: list[Value] = []
        self.skip_whitespace()
        if self.peek() == ord("]"):
            self.pos += 1
            return items
        while True:
            items.append(self.read_value())
            if self.comma_or_close(ord("]")):
                return items

    def comma_or_close(self, close: int) -> bool:
        """Consume a separator; return True when the container was closed."""
        self.skip_whitespace()
        expected = f"',' or {chr(close)!r}"
        if self.at_end():
            raise UnexpectedEofError(expected, self.pos)
        byte = self.data[self.pos]
        if byte == ord(","):
            self.pos += 1
            self.skip_whitespace()
            if self.peek() == close:
                raise UnexpectedByteError("value", close, self.pos)
            return False
        if byte == close:
            self.pos += 1
            return True
        raise UnexpectedByteError(expected, byte, self.pos)

    def read_string(self) -> str:
        start = self.pos
        self.expect_byte(_QUOTE)
        buffer = bytearray()
        while True:
            if self.at_end():
                raise UnexpectedEofError("closing '\"'", self.pos)
            chunk = self.view[self.pos : self.pos + _WINDOW]
            run = scan_quote_or_backslash(chunk)
            buffer += chunk[:run]
            self.pos += run
            if run == len(chunk):
                continue
            byte = self.data[self.pos]
            self.pos += 1
            if byte == _QUOTE:
                break
            buffer += self.read_escape()
        try:
            return buffer.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidUtf8Error(start) from None

    def read_escape(self) -> bytes:
        if self.at_end():
            raise UnexpectedEofError("escape character", self.pos)
        code = self.data[self.pos]
        self.pos += 1
        simple = _SIMPLE_ESCAPES.get(code)
        if simple is not None:
            return simple
        if code != ord("u"):
            raise UnexpectedByteError("escape character", code, self.pos - 1)
        escape_start = self.pos - 2
        point = self.read_hex4()
        if 0xD800 <= point < 0xDC00:
            if self.data[self.pos : self.pos + 2] != b"\\u":
                raise InvalidUtf8Error(escape_start)
            self.pos += 2
            low = self.read_hex4()
            if not 0xDC00 <= low < 0xE000:
                raise InvalidUtf8Error(escape_start)
            point = 0x10000 + ((point - 0xD800) << 10) + (low - 0xDC00)
        elif 0xDC00 <= point < 0xE000:
            raise InvalidUtf8Error(escape_start)
        return chr(point).encode("utf-8")

    def read_hex4(self) -> int:
        text = self.data[self.pos : self.pos + 4]
        for index, byte in enumerate(text):
            if byte not in _HEX_DIGITS:
                raise UnexpectedByteError("hex digit", byte, self.pos + index)
        if len(text) < 4:
            raise UnexpectedEofError("hex digit", len(self.data))
        self.pos += 4
        return int(text, 16)

    def skip_digits(self) -> None:
        data = self.data
        while self.pos < len(data) and 0x30 <= data[self.pos] <= 0x39:
            self.pos += 1

    def require_digits(self) -> None:
        begin = self.pos
        self.skip_digits()
        if self.pos == begin:
            if self.at_end():
                raise UnexpectedEofError("digit", self.pos)
            raise UnexpectedByteError("digit", self.data[self.pos], self.pos)

    def read_number(self) -> Number:
        start = self.pos
        negative = self.peek() == ord("-")
        if negative:
            self.pos += 1
        self.skip_digits()
        if self.peek() in b".eE" and not self.at_end():
            self.pos = start
            return Number(NumberKind.F64, self.read_float())
        type_name = "i64" if negative else "u64"
        try:
            number = int(self.data[start : self.pos])
        except ValueError:
            raise NumberOverflowError(type_name) from None
        kind = NumberKind.I64 if negative else NumberKind.U64
        return Number(kind, number)

    def read_float(self) -> float:
        start = self.pos
        if self.peek() == ord("-"):
            self.pos += 1
        self.require_digits()
        if self.peek() == ord("."):
            self.pos += 1
            self.require_digits()
        if not self.at_end() and self.peek() in b"eE":
            self.pos += 1
            if not self.at_end() and self.peek() in b"+-":
                self.pos += 1
            self.require_digits()
        return float(self.data[start : self.pos])


def decode_value(data: bytes | bytearray | memoryview | str) -> Value:
    """Parse one JSON document; surrounding whitespace is allowed, other trailing data is not."""
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    reader = _Reader(raw)
    value = reader.read_value()
    reader.skip_whitespace()
    if not reader.at_end():
        raise UnexpectedByteError("end of input", raw[reader.pos], reader.pos)
    return value