"""
Property Schema Validation

Validates node and edge properties against the JSON-Schema-like descriptors
stored on dynamic types. Only the subset the graph actually uses is
supported: ``type``, ``enum``, ``minimum``/``maximum``, ``minLength``/
``maxLength``, ``pattern``, ``format: date-time``, ``minItems``/``maxItems``,
``items``, ``properties`` and ``required``.

A descriptor is compiled into a small tree of constraint nodes, then a single
recursive evaluator walks value and tree together. Validation never raises:
it returns every violation so a caller can correct all of them at once.

Example:
    >>> schema = {"type": "object", "required": ["ticker"],
    ...           "properties": {"ticker": {"type": "string"}}}
    >>> [v.message for v in validate({"ticker": 123}, schema)]
    ['properties.ticker expected string, got number (123)']
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Pattern, Tuple, Union

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

ROOT_PATH = "properties"


# ---------------------------------------------------------------------------
# Constraint nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TypeConstraint:
    """Value kind must match one of ``types``; a mismatch stops descent."""

    types: Tuple[str, ...]


@dataclass(frozen=True)
class EnumConstraint:
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class NumericConstraint:
    """Inclusive bounds, applied to numeric values only."""

    minimum: Optional[float] = None
    maximum: Optional[float] = None


@dataclass(frozen=True)
class StringConstraint:
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Pattern[str]] = None
    date_time: bool = False


@dataclass(frozen=True)
class ArrayConstraint:
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    items: Optional["SchemaNode"] = None


@dataclass(frozen=True)
class ObjectConstraint:
    """Required keys plus per-key schemas. Undeclared keys pass through."""

    required: Tuple[str, ...] = ()
    properties: Tuple[Tuple[str, "SchemaNode"], ...] = ()

    def property_schemas(self) -> Dict[str, "SchemaNode"]:
        return dict(self.properties)


Constraint = Union[
    TypeConstraint,
    EnumConstraint,
    NumericConstraint,
    StringConstraint,
    ArrayConstraint,
    ObjectConstraint,
]


@dataclass(frozen=True)
class SchemaNode:
    """Compiled descriptor: constraints in evaluation order."""

    constraints: Tuple[Constraint, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Violation:
    """One structural problem. ``message`` already includes the path."""

    path: str
    message: str

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Value classification
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def value_kind(value: Any) -> str:
    """JSON kind label used in violation messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def matches_type(value: Any, schema_type: str) -> bool:
    if schema_type == "null":
        return value is None
    if schema_type == "array":
        return isinstance(value, (list, tuple))
    if schema_type == "object":
        return isinstance(value, Mapping)
    if schema_type == "integer":
        if isinstance(value, int) and not isinstance(value, bool):
            return True
        return isinstance(value, float) and math.isfinite(value) and value.is_integer()
    if schema_type == "number":
        return _is_number(value)
    if schema_type == "string":
        return isinstance(value, str)
    if schema_type == "boolean":
        return isinstance(value, bool)
    return False


def _json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _num(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _enum_member(value: Any, allowed: Tuple[Any, ...]) -> bool:
    for candidate in allowed:
        # bool is an int subclass; JSON treats them as distinct kinds
        if isinstance(candidate, bool) or isinstance(value, bool):
            if isinstance(candidate, bool) and isinstance(value, bool) and candidate is value:
                return True
            continue
        if value == candidate and value_kind(value) == value_kind(candidate):
            return True
    return False


_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def _parses_as_datetime(value: str) -> bool:
    """True when ``value`` parses as a date carrying at least its own year.

    dateutil fills missing fields from ``default``, so parsing against two
    different defaults exposes inputs such as ``"March"`` or ``"10"``.
    """
    try:
        first = dateutil_parser.parse(value, default=_DEFAULT_A)
        second = dateutil_parser.parse(value, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        return False
    return first.year == second.year


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def _bound(schema: Mapping[str, Any], key: str) -> Optional[float]:
    value = schema.get(key)
    return value if _is_number(value) else None


def _length(schema: Mapping[str, Any], key: str) -> Optional[int]:
    value = schema.get(key)
    if _is_number(value):
        return int(value)
    return None


def compile_schema(schema: Any) -> Optional[SchemaNode]:
    """Compile a descriptor into a ``SchemaNode``.

    Anything that is not a mapping compiles to None and validates nothing,
    matching how dynamic, LLM-authored schemas are treated elsewhere.
    """
    if not isinstance(schema, Mapping):
        return None

    constraints: List[Constraint] = []

    raw_type = schema.get("type")
    if isinstance(raw_type, str):
        constraints.append(TypeConstraint((raw_type,)))
    elif isinstance(raw_type, (list, tuple)) and raw_type:
        constraints.append(TypeConstraint(tuple(str(t) for t in raw_type)))

    if isinstance(schema.get("enum"), (list, tuple)):
        constraints.append(EnumConstraint(tuple(schema["enum"])))

    minimum, maximum = _bound(schema, "minimum"), _bound(schema, "maximum")
    if minimum is not None or maximum is not None:
        constraints.append(NumericConstraint(minimum, maximum))

    pattern: Optional[Pattern[str]] = None
    if isinstance(schema.get("pattern"), str) and schema["pattern"]:
        try:
            pattern = re.compile(schema["pattern"])
        except re.error as exc:
            # Dynamic schemas may carry patterns Python cannot compile
            logger.debug(f"Ignoring invalid pattern {schema['pattern']!r}: {exc}")
    min_length, max_length = _length(schema, "minLength"), _length(schema, "maxLength")
    date_time = schema.get("format") == "date-time"
    if min_length is not None or max_length is not None or pattern is not None or date_time:
        constraints.append(StringConstraint(min_length, max_length, pattern, date_time))

    min_items, max_items = _length(schema, "minItems"), _length(schema, "maxItems")
    items = compile_schema(schema.get("items")) if schema.get("items") else None
    if min_items is not None or max_items is not None or items is not None:
        constraints.append(ArrayConstraint(min_items, max_items, items))

    raw_required = schema.get("required")
    required = tuple(str(k) for k in raw_required) if isinstance(raw_required, (list, tuple)) else ()
    raw_properties = schema.get("properties")
    properties: List[Tuple[str, SchemaNode]] = []
    if isinstance(raw_properties, Mapping):
        for key, sub_schema in raw_properties.items():
            compiled = compile_schema(sub_schema)
            if compiled is not None:
                properties.append((str(key), compiled))
    if required or properties:
        constraints.append(ObjectConstraint(required, tuple(properties)))

    return SchemaNode(tuple(constraints))


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _evaluate(value: Any, node: SchemaNode, path: str, out: List[Violation]) -> None:
    for constraint in node.constraints:
        if isinstance(constraint, TypeConstraint):
            if not any(matches_type(value, t) for t in constraint.types):
                out.append(Violation(
                    path,
                    f"{path} expected {'|'.join(constraint.types)}, "
                    f"got {value_kind(value)} ({_json(value)})",
                ))
                return

        elif isinstance(constraint, EnumConstraint):
            if not _enum_member(value, constraint.values):
                allowed = ", ".join(_json(v) for v in constraint.values)
                out.append(Violation(path, f"{path} must be one of {allowed}"))

        elif isinstance(constraint, NumericConstraint):
            if not _is_number(value):
                continue
            if constraint.minimum is not None and value < constraint.minimum:
                out.append(Violation(
                    path, f"{path} must be >= {_num(constraint.minimum)}, got {_num(value)}"
                ))
            if constraint.maximum is not None and value > constraint.maximum:
                out.append(Violation(
                    path, f"{path} must be <= {_num(constraint.maximum)}, got {_num(value)}"
                ))

        elif isinstance(constraint, StringConstraint):
            if not isinstance(value, str):
                continue
            if constraint.min_length is not None and len(value) < constraint.min_length:
                out.append(Violation(
                    path,
                    f"{path} must have length >= {constraint.min_length}, got {len(value)}",
                ))
            if constraint.max_length is not None and len(value) > constraint.max_length:
                out.append(Violation(
                    path,
                    f"{path} must have length <= {constraint.max_length}, got {len(value)}",
                ))
            if constraint.pattern is not None and not constraint.pattern.search(value):
                out.append(Violation(
                    path,
                    f"{path} must match pattern {constraint.pattern.pattern}, got {_json(value)}",
                ))
            if constraint.date_time and not _parses_as_datetime(value):
                out.append(Violation(
                    path, f"{path} must be a valid date-time string, got {_json(value)}"
                ))

        elif isinstance(constraint, ArrayConstraint):
            if not isinstance(value, (list, tuple)):
                continue
            if constraint.min_items is not None and len(value) < constraint.min_items:
                out.append(Violation(
                    path,
                    f"{path} must have at least {constraint.min_items} items, got {len(value)}",
                ))
            if constraint.max_items is not None and len(value) > constraint.max_items:
                out.append(Violation(
                    path,
                    f"{path} must have at most {constraint.max_items} items, got {len(value)}",
                ))
            if constraint.items is not None:
                for index, item in enumerate(value):
                    _evaluate(item, constraint.items, f"{path}[{index}]", out)

        elif isinstance(constraint, ObjectConstraint):
            if not isinstance(value, Mapping):
                continue
            for key in constraint.required:
                if key not in value:
                    out.append(Violation(f"{path}.{key}", f"{path}.{key} is required"))
            schemas = constraint.property_schemas()
            for key, item in value.items():
                if key in schemas:
                    _evaluate(item, schemas[key], f"{path}.{key}", out)


def validate(value: Any, schema: Any, path: str = ROOT_PATH) -> List[Violation]:
    """Validate ``value`` against a descriptor (raw mapping or compiled)."""
    node = schema if isinstance(schema, SchemaNode) else compile_schema(schema)
    violations: List[Violation] = []
    if node is not None:
        _evaluate(value, node, path, violations)
    return violations


def validate_properties(
    properties: Mapping[str, Any],
    schema: Optional[Mapping[str, Any]],
) -> List[str]:
    """Violation messages for a properties object; empty when schema is None."""
    if schema is None:
        return []
    return [violation.message for violation in validate(properties, schema)]
