# fastserial

A small JSON toolkit in two modules:

- `fastserial.scan` holds byte scanners: find the first quote or
  backslash, find the first byte that needs escaping, count leading JSON
  whitespace, and check that input is pure ASCII.
- `fastserial.value` holds a dynamic JSON value model (`Value`, `Number`)
  with a compact encoder and a strict decoder.

## Installation

```
pip install .
```

## Scanning bytes

Every scanner takes `bytes`, `bytearray` or `memoryview`.

```python
from fastserial.scan import (
    scan_quote_or_backslash,
    scan_escape_chars,
    skip_whitespace,
    is_all_ascii,
)

scan_quote_or_backslash(b'hello"world')   # 5
scan_escape_chars(b"abc\ndef")            # 3
skip_whitespace(b" \t\n\r hello")         # 5
is_all_ascii("café".encode())             # False
```

`scan_quote_or_backslash` and `scan_escape_chars` return the length of
the input when nothing matches; `scan_escape_chars` looks for quote,
backslash, newline, carriage return and tab. `skip_whitespace` counts
space, tab, newline and carriage return.

## Working with values

```python
from fastserial.value import decode_value, encode_value, from_python

doc = decode_value(b'{"name": "Alice", "age": 30, "tags": ["a", "b"]}')
doc.is_object()                   # True
doc.as_object()["age"].as_u64()   # 30

value = from_python({"b": [1, -2, 3.5], "a": None, "ok": True})
encode_value(value)               # b'{"a":null,"b":[1,-2,3.5],"ok":true}'
value.encode()                    # the same bytes
```

- `decode_value` accepts bytes-like input or `str`. Whitespace around the
  document is allowed; any other trailing data, trailing commas and bad
  escapes are errors. `\uXXXX` escapes, including surrogate pairs, are
  understood.
- Numbers without `.`, `e` or `E` decode as `NumberKind.U64` (or
  `NumberKind.I64` when negative) and must fit in 64 bits; the rest decode
  as `NumberKind.F64`.
- `from_python` turns `None`, `bool`, `int`, `float`, `str`, `list`,
  `tuple` and `dict` (with `str` keys) into a `Value`; other types raise
  `TypeError`.
- Object members are written with keys in sorted order, so encoding is
  deterministic.
- `str(value)` gives the same text as `encode()`, except that whole floats
  below 2**53 are written as `N.0` and NaN and infinities are rendered as
  `NaN`, `inf` and `-inf` instead of raising.

The accessors `as_bool`, `as_u64`, `as_i64`, `as_f64`, `as_str`,
`as_array` and `as_object` return `None` when the value is of another
kind; `Number.as_u64` and `Number.as_i64` also return `None` when the
number does not fit.

## Errors

Failures raise subclasses of `fastserial.value.Error` (itself a
`ValueError`): `UnexpectedByteError`, `UnexpectedEofError`,
`NumberOverflowError` and `InvalidUtf8Error` while decoding, and
`NonFiniteFloatError` when encoding NaN or an infinity.

## What it does not do

The package works with dynamic `Value` trees only. It does not map JSON
onto your own classes, has no binary format, and offers no command-line
tool.

## Running the tests

```
pip install .[test]
pytest
```