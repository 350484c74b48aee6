"""Interpret a canonical schema into a field tree and initial values.

The builder never coerces types: a schema whose ``const``, ``default`` and
``enum`` disagree with each other or with the declared type is rejected with a
:class:`~connector_form.lib.errors.SchemaError`.
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from connector_form.lib.errors import SchemaError
from connector_form.lib.paths import ITEMS, FieldPath, deep_merge
from connector_form.models.field_descriptor import UNSET, FieldDescriptor, FieldKind
from connector_form.schema.variants import find_discriminator, match_variant

logger = logging.getLogger(__name__)

__all__ = [
    "FormBuild",
    "build_form",
    "build_field_tree",
    "build_initial_values",
    "matches_type",
]

PRIMITIVE_TYPES = ("string", "integer", "number", "boolean")

_MISSING = object()


@dataclass(frozen=True)
class FormBuild:
    """Result of interpreting a canonical schema."""

    tree: FieldDescriptor
    initial_values: Dict[str, Any]


def matches_type(value: Any, json_type: Optional[str], nullable: bool = False) -> bool:
    """Check a literal against a JSON type without any coercion."""
    if value is None:
        return nullable
    if json_type == "string":
        return isinstance(value, str)
    if json_type == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if json_type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if json_type == "boolean":
        return isinstance(value, bool)
    if json_type == "object":
        return isinstance(value, Mapping)
    if json_type == "array":
        return isinstance(value, list)
    return False


def build_form(
    schema: Mapping[str, Any],
    prior_values: Optional[Mapping[str, Any]] = None,
    *,
    edit_mode: bool = False,
) -> FormBuild:
    """Build the field tree and the initial values of a form.

    Args:
        schema: Canonical schema
        prior_values: Values of an existing configuration (edit mode)
        edit_mode: Whether an existing configuration is being edited

    Raises:
        SchemaError: If the schema is structurally invalid
    """
    tree = build_field_tree(schema)
    initial_values = build_initial_values(tree, prior_values, edit_mode=edit_mode)
    return FormBuild(tree=tree, initial_values=initial_values)


def build_field_tree(schema: Mapping[str, Any]) -> FieldDescriptor:
    """Recursively interpret a schema into an ordered descriptor tree."""
    try:
        return _build_node(schema, path=(), required=False)
    except SchemaError as e:
        logger.error("Invalid connector schema at %s: %s", e.details.get("path"), e)
        raise


def _resolve_type(schema: Mapping[str, Any], path: FieldPath) -> Tuple[str, bool]:
    declared = schema.get("type")
    if declared is None:
        raise SchemaError("Schema node is missing 'type'", path=path, keyword="type")

    nullable = False
    if isinstance(declared, list):
        nullable = "null" in declared
        concrete = [t for t in declared if t != "null"]
        if len(concrete) != 1:
            raise SchemaError(
                f"Ambiguous type {declared!r}; declare exactly one non-null type",
                path=path,
                keyword="type",
            )
        declared = concrete[0]

    if declared not in PRIMITIVE_TYPES + ("object", "array"):
        raise SchemaError(f"Unsupported type {declared!r}", path=path, keyword="type")
    return declared, nullable


def _check_literals(
    schema: Mapping[str, Any],
    path: FieldPath,
    json_type: str,
    nullable: bool,
) -> Tuple[Any, Any, Optional[Tuple[Any, ...]]]:
    const = schema.get("const", UNSET)
    default = schema.get("default", UNSET)
    enum = schema.get("enum")

    if enum is not None:
        if not isinstance(enum, list) or not enum:
            raise SchemaError("'enum' must be a non-empty list", path=path, keyword="enum")
        for option in enum:
            if not matches_type(option, json_type, nullable):
                raise SchemaError(
                    f"enum value {option!r} does not match type {json_type!r}",
                    path=path,
                    keyword="enum",
                )
        enum = tuple(enum)

    if const is not UNSET:
        if not matches_type(const, json_type, nullable):
            raise SchemaError(
                f"const {const!r} does not match type {json_type!r}",
                path=path,
                keyword="const",
            )
        if enum is not None and const not in enum:
            raise SchemaError(
                f"const {const!r} conflicts with enum {list(enum)!r}",
                path=path,
                keyword="const",
            )

    if default is not UNSET:
        if not matches_type(default, json_type, nullable):
            raise SchemaError(
                f"default {default!r} does not match type {json_type!r}",
                path=path,
                keyword="default",
            )
        if enum is not None and default not in enum:
            raise SchemaError(
                f"default {default!r} is not one of enum {list(enum)!r}",
                path=path,
                keyword="default",
            )

    return const, default, enum


def _check_constraints(schema: Mapping[str, Any], path: FieldPath) -> None:
    pattern = schema.get("pattern")
    if pattern is not None:
        if not isinstance(pattern, str):
            raise SchemaError("'pattern' must be a string", path=path, keyword="pattern")
        try:
            re.compile(pattern)
        except re.error as e:
            raise SchemaError(
                f"Invalid pattern {pattern!r}: {e}",
                path=path,
                keyword="pattern",
            ) from e

    for keyword in ("minimum", "maximum"):
        bound = schema.get(keyword)
        if bound is not None and (isinstance(bound, bool) or not isinstance(bound, (int, float))):
            raise SchemaError(
                f"'{keyword}' must be a number, got {bound!r}",
                path=path,
                keyword=keyword,
            )

    for keyword in ("minLength", "maxLength"):
        length = schema.get(keyword)
        if length is not None and (isinstance(length, bool) or not isinstance(length, int) or length < 0):
            raise SchemaError(
                f"'{keyword}' must be a non-negative integer, got {length!r}",
                path=path,
                keyword=keyword,
            )


def _build_node(schema: Any, path: FieldPath, required: bool) -> FieldDescriptor:
    if not isinstance(schema, Mapping):
        raise SchemaError("Schema node must be an object", path=path)

    common = {
        "path": path,
        "title": schema.get("title"),
        "description": schema.get("description"),
        "required": required,
        "schema": schema,
    }

    if "oneOf" in schema:
        return _build_union(schema, path, common)

    json_type, nullable = _resolve_type(schema, path)
    const, default, enum = _check_literals(schema, path, json_type, nullable)
    common.update(
        type=json_type,
        nullable=nullable,
        const=const,
        default=default,
        enum=enum,
        examples=tuple(schema.get("examples") or ()),
    )

    if json_type == "object":
        properties = schema.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise SchemaError("'properties' must be an object", path=path, keyword="properties")
        required_keys = schema.get("required") or []
        if not isinstance(required_keys, list):
            raise SchemaError("'required' must be a list", path=path, keyword="required")
        children = tuple(
            _build_node(sub, path + (key,), key in required_keys)
            for key, sub in properties.items()
        )
        return FieldDescriptor(kind=FieldKind.OBJECT, children=children, **common)

    if json_type == "array":
        if "items" not in schema:
            raise SchemaError("Array node is missing 'items'", path=path, keyword="items")
        items = _build_node(schema["items"], path + (ITEMS,), required=False)
        return FieldDescriptor(kind=FieldKind.ARRAY, items=items, **common)

    _check_constraints(schema, path)
    return FieldDescriptor(
        kind=FieldKind.PRIMITIVE,
        format=schema.get("format"),
        pattern=schema.get("pattern"),
        minimum=schema.get("minimum"),
        maximum=schema.get("maximum"),
        min_length=schema.get("minLength"),
        max_length=schema.get("maxLength"),
        secret=bool(schema.get("airbyte_secret", False)),
        **common,
    )


def _build_union(schema: Mapping[str, Any], path: FieldPath, common: Dict[str, Any]) -> FieldDescriptor:
    options = schema["oneOf"]
    if not isinstance(options, list):
        raise SchemaError("'oneOf' must be a list", path=path, keyword="oneOf")

    variants: List[FieldDescriptor] = []
    for index, option in enumerate(options):
        variant = _build_node(option, path, required=False)
        if variant.kind is not FieldKind.OBJECT:
            raise SchemaError(
                f"oneOf variant {index} must be an object schema",
                path=path,
                keyword="oneOf",
            )
        variants.append(variant)

    discriminator = find_discriminator(variants, path)
    return FieldDescriptor(
        kind=FieldKind.UNION,
        type="object",
        variants=tuple(variants),
        discriminator=discriminator,
        **common,
    )


def build_initial_values(
    tree: FieldDescriptor,
    prior_values: Optional[Mapping[str, Any]] = None,
    *,
    edit_mode: bool = False,
) -> Dict[str, Any]:
    """Compute initial values: defaults < prior values, constants on top.

    Unknown keys of ``prior_values`` are kept; ``cast(strip_unknown=True)``
    removes them at submit time.
    """
    prior: Any = prior_values if prior_values is not None else _MISSING
    result = _initial(tree, prior, edit_mode)
    if not isinstance(result, dict):
        return {}
    return result


def _initial(node: FieldDescriptor, prior: Any, edit_mode: bool) -> Any:
    if node.has_const:
        return copy.deepcopy(node.const)

    if node.kind is FieldKind.PRIMITIVE:
        if prior is not _MISSING:
            return copy.deepcopy(prior)
        if node.has_default:
            return copy.deepcopy(node.default)
        return _MISSING

    if node.kind is FieldKind.ARRAY:
        if isinstance(prior, list):
            return [_initial(node.items, item, edit_mode) for item in prior]
        if prior is not _MISSING and prior is not None:
            return copy.deepcopy(prior)
        if node.has_default:
            return copy.deepcopy(node.default)
        return []

    if node.kind is FieldKind.UNION:
        index = match_variant(node, prior)
        if index is None:
            if edit_mode and prior is not _MISSING:
                # Left untouched until the widget store resolves the variant
                return copy.deepcopy(prior)
            index = 0
        return _initial(node.variants[index], prior, edit_mode)

    # Object
    if prior is not _MISSING and prior is not None and not isinstance(prior, Mapping):
        return copy.deepcopy(prior)
    prior_map: Mapping[str, Any] = prior if isinstance(prior, Mapping) else {}

    if node.has_default and isinstance(node.default, Mapping):
        prior_map = deep_merge(node.default, prior_map)

    result: Dict[str, Any] = {}
    declared = set()
    for child in node.children:
        declared.add(child.key)
        value = _initial(child, prior_map.get(child.key, _MISSING), edit_mode)
        if value is not _MISSING:
            result[child.key] = value

    for key, value in prior_map.items():
        if key not in declared:
            result[key] = copy.deepcopy(value)
    return result
