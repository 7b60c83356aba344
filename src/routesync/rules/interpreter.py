"""Validation-rule interpretation.

Turns the raw rule list declared for one input field (``required``,
``email``, ``min:3``, ``in:a,b`` ...) into a :class:`~routesync.models.FieldDescriptor`
carrying a type tag, bounds, enum values, and a synthesised example value.

The rule grammar is deliberately forgiving. Unknown rule names are skipped,
unparsable bounds are dropped, and custom rule objects that cannot be
understood are kept as :class:`~routesync.models.OpaqueToken` so they can still
mark a field required. Nothing in this module raises for bad input: the
worst case is a plain optional string field with an empty example.

Typical usage::

    from routesync.rules.interpreter import interpret_rules, tokenize

    tokens = {"email": tokenize("required|email"), "age": tokenize(["integer", "min:18"])}
    fields = interpret_rules(tokens, {"integer": 1})
    fields["age"].example  # 18
"""

from __future__ import annotations

import calendar
import json
import logging
import math
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Callable, Optional, Union

from routesync.models import (
    DEFAULT_EXAMPLE_VALUES,
    FieldDescriptor,
    FieldType,
    OpaqueToken,
    StringToken,
)

logger = logging.getLogger(__name__)

_TYPE_RULES: dict[str, FieldType] = {
    "email": FieldType.EMAIL,
    "url": FieldType.URL,
    "uuid": FieldType.UUID,
    "boolean": FieldType.BOOLEAN,
    "array": FieldType.ARRAY,
    "json": FieldType.JSON,
    "string": FieldType.STRING,
    "integer": FieldType.INTEGER,
    "numeric": FieldType.NUMERIC,
}

_DATE_RULES = ("date", "date_format")


# ------------------------------------------------------------------ #
# Tokenizing
# ------------------------------------------------------------------ #


def parse_rule(raw: Any) -> Optional[Union[StringToken, OpaqueToken]]:
    """Parse one raw rule into a token.

    * ``"min:3"`` becomes ``StringToken(name="min", args=["3"])``; the
      argument string is split on commas.
    * A mapping ``{"rule": "App\\Rules\\RequiredIfAdmin"}`` becomes an
      :class:`OpaqueToken`. ``implies_required`` is taken from the mapping
      when given, otherwise it is true when the label contains ``Required``.
    * Tokens that are already parsed are returned unchanged.

    Args:
        raw: A rule string, a rule-object mapping, or a token.

    Returns:
        The parsed token, or ``None`` for empty strings and values of any
        other type.
    """
    if isinstance(raw, (StringToken, OpaqueToken)):
        return raw

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if ":" not in text:
            return StringToken(name=text.lower())
        name, arg_string = text.split(":", 1)
        return StringToken(name=name.strip().lower(), args=arg_string.split(","))

    if isinstance(raw, Mapping):
        label = str(raw.get("rule") or raw.get("class") or "")
        implies = raw.get("implies_required")
        if implies is None:
            implies = "Required" in label
        return OpaqueToken(label=label, implies_required=bool(implies))

    logger.debug("Ignoring rule of unsupported type %s", type(raw).__name__)
    return None


def tokenize(raw_rules: Any) -> list[Union[StringToken, OpaqueToken]]:
    """Tokenize a field's rules given as ``"a|b:c"`` or as a list of rules."""
    if isinstance(raw_rules, str):
        items: Iterable[Any] = raw_rules.split("|")
    elif isinstance(raw_rules, (list, tuple)):
        items = raw_rules
    elif raw_rules is None:
        return []
    else:
        items = [raw_rules]

    tokens = []
    for item in items:
        token = parse_rule(item)
        if token is not None:
            tokens.append(token)
    return tokens


def normalize_rules(raw: Any) -> dict[str, list[Union[StringToken, OpaqueToken]]]:
    """Tokenize a whole ``field -> rules`` mapping.

    Non-string field names (list indices from a malformed manifest) are
    skipped, as is anything that is not a mapping at all.
    """
    if not isinstance(raw, Mapping):
        return {}
    rules: dict[str, list[Union[StringToken, OpaqueToken]]] = {}
    for field, field_rules in raw.items():
        if not isinstance(field, str):
            continue
        rules[field] = tokenize(field_rules)
    return rules


# ------------------------------------------------------------------ #
# Interpretation
# ------------------------------------------------------------------ #


def interpret(
    field_path: str,
    tokens: Any,
    example_values: Optional[Mapping[str, Any]] = None,
    *,
    generate_examples: bool = True,
    now: Optional[datetime] = None,
) -> FieldDescriptor:
    """Interpret one field's rule tokens into a :class:`FieldDescriptor`.

    Tokens are applied in order. ``required`` (or an opaque token that
    implies it) sets the required flag, which later tokens never clear.
    Type rules overwrite the type, so the last type rule wins.

    Args:
        field_path: Dot-notation field name (``address.city``, ``tags.*``).
        tokens: The field's tokens. Raw strings are parsed on the fly; any
            other non-token value is ignored.
        example_values: Example value per type name. Missing types fall back
            to :data:`~routesync.models.DEFAULT_EXAMPLE_VALUES`.
        generate_examples: When false the example is ``None``.
        now: Clock used for ``date_format`` examples (defaults to the
            current time).

    Returns:
        The interpreted descriptor. Never raises.
    """
    field = FieldDescriptor(path=str(field_path))

    if isinstance(tokens, (str, bytes)) or not isinstance(tokens, Iterable):
        tokens = tokenize(tokens) if isinstance(tokens, str) else []

    for token in tokens:
        if isinstance(token, str):
            token = parse_rule(token)
        if isinstance(token, OpaqueToken):
            if token.implies_required:
                field.required = True
            continue
        if not isinstance(token, StringToken):
            continue
        _apply_token(field, token)

    if generate_examples:
        field.example = synthesize_example(field, example_values or {}, now=now)
    else:
        field.example = None
    return field


def interpret_rules(
    rules: Mapping[str, Any],
    example_values: Optional[Mapping[str, Any]] = None,
    *,
    generate_examples: bool = True,
    now: Optional[datetime] = None,
) -> dict[str, FieldDescriptor]:
    """Interpret every field of a ``field -> tokens`` mapping, keeping its order."""
    fields: dict[str, FieldDescriptor] = {}
    for path, tokens in rules.items():
        if not isinstance(path, str):
            continue
        fields[path] = interpret(
            path,
            tokens,
            example_values,
            generate_examples=generate_examples,
            now=now,
        )
    return fields


def _apply_token(field: FieldDescriptor, token: StringToken) -> None:
    """Fold a single string token into *field*."""
    name = token.name

    if name == "required":
        field.required = True
    elif name in _TYPE_RULES:
        field.type = _TYPE_RULES[name]
    elif name in _DATE_RULES:
        field.type = FieldType.DATE
        if token.args and any(token.args):
            # Formats may legitimately contain commas ("D, d M Y").
            field.format = ",".join(token.args)
    elif name == "in":
        field.enum_values = list(token.args)
    elif name in ("min", "max"):
        bound = _parse_bound(token.args[0] if token.args else None)
        if bound is None:
            logger.debug("Ignoring non-numeric %s bound on %s: %r", name, field.path, token.args)
            return
        setattr(field, name, bound)


def _parse_bound(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


# ------------------------------------------------------------------ #
# Example synthesis
# ------------------------------------------------------------------ #


def synthesize_example(
    field: FieldDescriptor,
    example_values: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> Any:
    """Pick an example value for *field*.

    Priority: the first enum value, then the configured example for the
    field's type (numbers clamped into ``[min, max]``), then the string
    example.
    """
    if field.enum_values:
        return field.enum_values[0]

    def configured(type_name: str) -> Any:
        if type_name in example_values:
            return example_values[type_name]
        return DEFAULT_EXAMPLE_VALUES.get(type_name, "")

    kind = field.type
    if kind == FieldType.DATE:
        if field.format:
            try:
                return format_php_date(field.format, now or datetime.now())
            except ValueError as exc:
                logger.debug("Cannot render date format %r for %s: %s", field.format, field.path, exc)
        return configured("date")
    if kind == FieldType.INTEGER:
        value = _coerce(configured("integer"), int, 1)
        return _clamp(value, field.min, field.max, int)
    if kind == FieldType.NUMERIC:
        value = _coerce(configured("numeric"), float, 1.0)
        return _clamp(value, field.min, field.max, float)
    if kind == FieldType.JSON:
        return json.dumps(configured("array"))
    if kind in (FieldType.EMAIL, FieldType.URL, FieldType.UUID, FieldType.BOOLEAN, FieldType.ARRAY):
        return configured(kind.value)
    return configured("string")


def _coerce(value: Any, caster: Callable[[Any], Any], default: Any) -> Any:
    if isinstance(value, bool):
        return default
    try:
        return caster(value)
    except (TypeError, ValueError):
        return default


def _clamp(
    value: Any,
    low: Optional[float],
    high: Optional[float],
    caster: Callable[[float], Any],
) -> Any:
    if low is not None:
        value = max(value, caster(low))
    if high is not None:
        value = min(value, caster(high))
    return value


# ------------------------------------------------------------------ #
# PHP-style date formats
# ------------------------------------------------------------------ #


def _ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def _iso_offset(moment: datetime, colon: bool) -> str:
    offset = moment.utcoffset()
    if offset is None:
        return "+00:00" if colon else "+0000"
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{mins:02d}" if colon else f"{sign}{hours:02d}{mins:02d}"


_PHP_DATE_TOKENS: dict[str, Callable[[datetime], str]] = {
    # Day
    "d": lambda m: f"{m.day:02d}",
    "D": lambda m: m.strftime("%a"),
    "j": lambda m: str(m.day),
    "l": lambda m: m.strftime("%A"),
    "N": lambda m: str(m.isoweekday()),
    "S": lambda m: _ordinal_suffix(m.day),
    "w": lambda m: str(m.isoweekday() % 7),
    "z": lambda m: str(m.timetuple().tm_yday - 1),
    # Week, month, year
    "W": lambda m: f"{m.isocalendar()[1]:02d}",
    "F": lambda m: m.strftime("%B"),
    "m": lambda m: f"{m.month:02d}",
    "M": lambda m: m.strftime("%b"),
    "n": lambda m: str(m.month),
    "t": lambda m: str(calendar.monthrange(m.year, m.month)[1]),
    "L": lambda m: "1" if calendar.isleap(m.year) else "0",
    "o": lambda m: str(m.isocalendar()[0]),
    "Y": lambda m: f"{m.year:04d}",
    "y": lambda m: f"{m.year % 100:02d}",
    # Time
    "a": lambda m: "am" if m.hour < 12 else "pm",
    "A": lambda m: "AM" if m.hour < 12 else "PM",
    "g": lambda m: str(m.hour % 12 or 12),
    "G": lambda m: str(m.hour),
    "h": lambda m: f"{m.hour % 12 or 12:02d}",
    "H": lambda m: f"{m.hour:02d}",
    "i": lambda m: f"{m.minute:02d}",
    "s": lambda m: f"{m.second:02d}",
    "u": lambda m: f"{m.microsecond:06d}",
    "v": lambda m: f"{m.microsecond // 1000:03d}",
    # Timezone
    "O": lambda m: _iso_offset(m, colon=False),
    "P": lambda m: _iso_offset(m, colon=True),
    "T": lambda m: m.strftime("%Z") or "UTC",
    # Full date/time
    "c": lambda m: m.strftime("%Y-%m-%dT%H:%M:%S") + _iso_offset(m, colon=True),
    "r": lambda m: m.strftime("%a, %d %b %Y %H:%M:%S ") + _iso_offset(m, colon=False),
    "U": lambda m: str(int(m.timestamp())),
}


def format_php_date(pattern: str, moment: datetime) -> str:
    """Render *moment* using a PHP ``date()`` format pattern.

    Letters listed in the PHP manual are substituted, ``\\`` escapes the next
    character, and any other non-letter character is copied through.

    Raises:
        ValueError: If the pattern contains a letter that is not a known
            format character, or ends with a dangling backslash.
    """
    out: list[str] = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            escaped = next(chars, None)
            if escaped is None:
                raise ValueError("dangling escape at end of pattern")
            out.append(escaped)
        elif char in _PHP_DATE_TOKENS:
            out.append(_PHP_DATE_TOKENS[char](moment))
        elif char.isalpha():
            raise ValueError(f"unsupported format character {char!r}")
        else:
            out.append(char)
    return "".join(out)
