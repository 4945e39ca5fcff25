# tagjson

A strict JSON reader for Python with precise error positions and a
streaming reader for several JSON values placed back to back.

## Installing

```
pip install tagjson
```

To run the test suite, install the `test` extra:

```
pip install "tagjson[test]"
pytest
```

## Parsing JSON

```python
from tagjson.deserializer import from_str, from_slice, from_reader

from_str('{"a": [1, 2.5, true, null]}')
# {'a': [1, 2.5, True, None]}

from_slice(b'"text"')
# 'text'

with open("data.json", "rb") as stream:
    value = from_reader(stream)
```

Values come back as `dict`, `list`, `str`, `int`, `float`, `bool` or
`None`. The whole input must hold exactly one value; anything but
whitespace after it is a "trailing characters" error.

For finer control, build a `Deserializer` with `Deserializer.from_str`,
`Deserializer.from_slice` or `Deserializer.from_reader` and call its
methods: `parse_value()` reads one value, `parse_string()` reads a string
(any other value is a data error), `ignore_value()` validates and skips a
value without building it, and `end()` checks that only whitespace
remains.

Arrays and objects may nest at most 127 levels deep; deeper input is a
"recursion limit exceeded" error unless `disable_recursion_limit()` is
called first:

```python
from tagjson.deserializer import Deserializer

de = Deserializer.from_str("[" * 1000 + "]" * 1000)
de.disable_recursion_limit()
value = de.parse_value()
de.end()
```

## Numbers

Numbers follow the JSON grammar exactly: no leading zeros, at least one
digit after a decimal point and in an exponent. Non-negative integers up to
2**64 - 1 and negative integers down to -2**63 become `int`; `-0`,
fractions, exponents and larger integers become `float`. A value too large
for a float is reported as "number out of range" rather than turned into
infinity, while one too small becomes zero.

A single number on its own can be parsed with
`tagjson.numbers.parse_number`:

```python
from tagjson.numbers import parse_number

parse_number("-12")     # -12
parse_number("1.5e3")   # 1500.0
```

## Errors

Every failure raises `tagjson.errors.JsonError`. Its `code` is an
`ErrorCode`, `line` and `column` give the one-based position (line 0 means
unknown), and its message ends in `at line L column C`:

```python
from tagjson.deserializer import from_str
from tagjson.errors import Category, JsonError

try:
    from_str("[1, 2,]")
except JsonError as err:
    print(err)                 # trailing comma at line 1 column 7
    print(err.line, err.column)
    assert err.classify() is Category.SYNTAX
    assert err.is_syntax()
```

`classify()` returns one of `Category.IO` (reading the stream failed; the
original `OSError` is available as `err.source`), `Category.SYNTAX`,
`Category.DATA` (valid JSON of the wrong type) and `Category.EOF`
(the input ended too early). `is_eof()` is useful for streaming callers
that may retry once more data has arrived.

## Reading a stream of values

`tagjson.stream.StreamDeserializer` yields values one after another from
input that holds several JSON texts back to back:

```python
from tagjson.stream import StreamDeserializer

stream = StreamDeserializer('{"k": 3}1"cool""stuff" 3{}  [0, 1, 2]')
for value in stream:
    print(value)
```

Numbers, `true`, `false` and `null` must be followed by whitespace, a
delimiter or the end of the input. A parse error is raised from the
iteration and ends it; a value followed by stray characters raises without
ending it. `byte_offset()` tells how many bytes have been consumed by
successfully decoded values, so that incomplete trailing data can be kept
and joined to more input later.

## What it does not do

tagjson only reads JSON. It does not write or format JSON, it does not
decode values into dataclasses or other user classes, and it has no
command-line tool.