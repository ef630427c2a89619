"""
InfluxDB line protocol encoding.

    measurement[,tag=value...] field=value[,field=value...] timestamp

Tags are written sorted by key, which is what InfluxDB recommends for write
performance. Field values carry their type in the syntax: integers end in
``i``, strings are double quoted, booleans are ``true``/``false``.
"""

import math
from typing import Dict, Iterable, List, Tuple

from influxdb_publisher.models import FieldValue, Point

_MEASUREMENT_ESCAPES = str.maketrans({",": r"\,", " ": r"\ "})
_KEY_ESCAPES = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ "})
_STRING_ESCAPES = str.maketrans({'"': r"\"", "\\": r"\\"})

_TRUE_LITERALS = {"t", "T", "true", "True", "TRUE"}
_FALSE_LITERALS = {"f", "F", "false", "False", "FALSE"}


def escape_measurement(value: str) -> str:
    return value.translate(_MEASUREMENT_ESCAPES)


def escape_key(value: str) -> str:
    """Escape a tag key, tag value or field key."""
    return value.translate(_KEY_ESCAPES)


def format_field_value(value: FieldValue) -> str:
    """
    Render one field value with its type marker.

    Raises:
        ValueError: for NaN/infinite floats, which InfluxDB cannot store
        TypeError: for unsupported value types
    """
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"field value {value!r} cannot be written")
        return repr(value)
    if isinstance(value, str):
        return '"' + value.translate(_STRING_ESCAPES) + '"'
    raise TypeError(f"unsupported field type {type(value).__name__}")


def encode_point(point: Point) -> str:
    parts = [escape_measurement(point.measurement)]
    for key in sorted(point.tags):
        value = point.tags[key]
        # InfluxDB rejects empty tag values
        if value == "":
            continue
        parts.append(f"{escape_key(key)}={escape_key(value)}")

    fields = ",".join(
        f"{escape_key(key)}={format_field_value(value)}" for key, value in point.fields.items()
    )
    return f"{','.join(parts)} {fields} {point.timestamp}"


def encode_batch(points: Iterable[Point]) -> str:
    """Encode points as a newline separated write body."""
    return "\n".join(encode_point(point) for point in points)


# ============================================================================
# PARSING - used to check what went over the wire
# ============================================================================


def _split(text: str, separator: str) -> List[str]:
    """Split on unescaped separators outside double quoted strings."""
    pieces: List[str] = []
    current: List[str] = []
    in_quotes = False
    escaped = False

    for char in text:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            current.append(char)
            escaped = True
        elif char == '"':
            current.append(char)
            in_quotes = not in_quotes
        elif char == separator and not in_quotes:
            pieces.append("".join(current))
            current = []
        else:
            current.append(char)

    if in_quotes:
        raise ValueError(f"unterminated string in {text!r}")
    pieces.append("".join(current))
    return pieces


def _unescape(text: str) -> str:
    result: List[str] = []
    escaped = False
    for char in text:
        if escaped:
            result.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        else:
            result.append(char)
    if escaped:
        result.append("\\")
    return "".join(result)


def _key_value(text: str) -> Tuple[str, str]:
    pieces = _split(text, "=")
    if len(pieces) < 2 or not pieces[0]:
        raise ValueError(f"expected key=value, got {text!r}")
    # Field string values may contain '=' inside the quotes only, so the
    # first unescaped '=' separates key and value
    return _unescape(pieces[0]), "=".join(pieces[1:])


def parse_field_value(raw: str) -> FieldValue:
    if raw.startswith('"'):
        if len(raw) < 2 or not raw.endswith('"'):
            raise ValueError(f"bad string value {raw!r}")
        return _unescape(raw[1:-1])
    if raw in _TRUE_LITERALS:
        return True
    if raw in _FALSE_LITERALS:
        return False
    if raw.endswith("i"):
        return int(raw[:-1])
    return float(raw)


def parse_line(line: str) -> Point:
    """
    Parse one line protocol line back into a Point.

    Raises:
        ValueError: if the line is malformed or has no timestamp
    """
    sections = [section for section in _split(line.strip(), " ") if section != ""]
    if len(sections) != 3:
        raise ValueError(f"expected measurement, fields and timestamp in {line!r}")
    series, field_text, timestamp = sections

    series_parts = _split(series, ",")
    measurement = _unescape(series_parts[0])
    tags: Dict[str, str] = {}
    for raw_tag in series_parts[1:]:
        key, value = _key_value(raw_tag)
        tags[key] = _unescape(value)

    fields: Dict[str, FieldValue] = {}
    for raw_field in _split(field_text, ","):
        key, value = _key_value(raw_field)
        fields[key] = parse_field_value(value)

    return Point(measurement=measurement, tags=tags, fields=fields, timestamp=int(timestamp))
