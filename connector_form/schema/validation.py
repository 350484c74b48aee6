"""Compile the active branch of a field tree into validation rules.

Only the selected variant of every union is compiled, so fields of inactive
variants are neither required nor type-checked, and ``cast`` with
``strip_unknown`` drops them.

Example:
    >>> schema = build_validation_schema(tree, store.snapshot)
    >>> issues = schema.validate(values)
    >>> payload = schema.cast(values, strip_unknown=True)
"""

from __future__ import annotations

import copy
import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from connector_form.lib.paths import ITEMS, FieldPath, path_key
from connector_form.models.field_descriptor import FieldDescriptor, FieldKind
from connector_form.schema.variants import active_variant_index, match_variant

logger = logging.getLogger(__name__)

__all__ = [
    "CompiledRule",
    "ValidationIssue",
    "ValidationSchema",
    "build_validation_schema",
    "compile_rule",
    "coerce",
]

_MISSING = object()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ValidationIssue:
    """A field-scoped validation error. Blocks submission, never editing."""

    path: FieldPath
    message: str

    @property
    def key(self) -> str:
        return path_key(self.path)

    def __str__(self) -> str:
        return f"{self.key or '<root>'}: {self.message}"


@dataclass(frozen=True)
class CompiledRule:
    """Validation logic of one node of the active view.

    For a union, ``children`` holds the single active variant and
    ``discriminator_value`` the constant its discriminator must carry. Unions
    inside array item templates have no widget entry; they keep every variant
    in ``alternatives`` and pick one per item by discriminator value.
    """

    field: FieldDescriptor
    children: Tuple["CompiledRule", ...] = ()
    items: Optional["CompiledRule"] = None
    discriminator: Optional[str] = None
    discriminator_value: Any = None
    alternatives: Tuple["CompiledRule", ...] = ()

    @property
    def kind(self) -> FieldKind:
        return self.field.kind

    @property
    def key(self) -> Any:
        return self.field.key

    def resolve_variant(self, value: Any) -> Tuple["CompiledRule", Any]:
        """Variant rule and expected discriminator constant for ``value``."""
        if self.alternatives:
            index = match_variant(self.field, value)
            if index is not None:
                return self.alternatives[index], self.field.variant_consts[index]
        return self.children[0], self.discriminator_value

    def properties(self, value: Any = None) -> Dict[Any, "CompiledRule"]:
        """Object properties known to this rule, active variant included."""
        if self.kind is FieldKind.UNION:
            return self.resolve_variant(value)[0].properties()
        return {child.key: child for child in self.children}


def compile_rule(node: FieldDescriptor, widgets: Mapping[FieldPath, Any]) -> CompiledRule:
    """Compile ``node`` and its active descendants."""
    if node.kind is FieldKind.UNION and ITEMS in node.path:
        alternatives = tuple(compile_rule(variant, widgets) for variant in node.variants)
        return CompiledRule(
            field=node,
            children=(alternatives[0],),
            discriminator=node.discriminator,
            discriminator_value=node.variant_consts[0],
            alternatives=alternatives,
        )
    if node.kind is FieldKind.UNION:
        index = active_variant_index(node, widgets)
        variant = node.variants[index]
        return CompiledRule(
            field=node,
            children=(compile_rule(variant, widgets),),
            discriminator=node.discriminator,
            discriminator_value=node.variant_consts[index],
        )
    if node.kind is FieldKind.OBJECT:
        return CompiledRule(
            field=node,
            children=tuple(compile_rule(child, widgets) for child in node.children),
        )
    if node.kind is FieldKind.ARRAY:
        return CompiledRule(field=node, items=compile_rule(node.items, widgets))
    return CompiledRule(field=node)


def _active_selections(node: FieldDescriptor, widgets: Mapping[FieldPath, Any]) -> Tuple[Tuple[FieldPath, int], ...]:
    selections: List[Tuple[FieldPath, int]] = []

    def visit(current: FieldDescriptor) -> None:
        if current.kind is FieldKind.UNION:
            index = active_variant_index(current, widgets)
            selections.append((current.path, index))
            visit(current.variants[index])
        elif current.kind is FieldKind.OBJECT:
            for child in current.children:
                visit(child)

    visit(node)
    return tuple(selections)


def build_validation_schema(
    tree: FieldDescriptor,
    widgets: Mapping[FieldPath, Any],
    previous: Optional["ValidationSchema"] = None,
) -> "ValidationSchema":
    """Combine the field tree and a widget snapshot into compiled rules.

    When ``previous`` was built from the same tree with the same active
    selections it is returned as is, so the object's identity only changes
    when the rules do.

    Args:
        tree: Field tree of the canonical schema
        widgets: Widget metadata snapshot
        previous: Last schema handed out, if any
    """
    selections = _active_selections(tree, widgets)
    if previous is not None and previous.signature == (id(tree), selections):
        return previous

    logger.debug("Compiling validation schema for %d active union(s)", len(selections))
    return ValidationSchema(tree, compile_rule(tree, widgets), selections)


def coerce(value: Any, json_type: Optional[str]) -> Tuple[bool, Any]:
    """Coerce a form value to a JSON primitive type.

    Returns:
        Tuple of (success, coerced value)
    """
    if json_type == "string":
        if isinstance(value, str):
            return True, value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return True, str(value)
        return False, value

    if json_type == "integer":
        if isinstance(value, bool):
            return False, value
        if isinstance(value, int):
            return True, value
        if isinstance(value, float):
            return (True, int(value)) if value.is_integer() else (False, value)
        if isinstance(value, str):
            text = value.strip()
            try:
                return True, int(text)
            except ValueError:
                pass
            try:
                number = float(text)
            except ValueError:
                return False, value
            if math.isfinite(number) and number.is_integer():
                return True, int(number)
        return False, value

    if json_type == "number":
        if isinstance(value, bool):
            return False, value
        if isinstance(value, (int, float)):
            return True, value
        if isinstance(value, str):
            text = value.strip()
            try:
                return True, int(text)
            except ValueError:
                pass
            try:
                number = float(text)
            except ValueError:
                return False, value
            if math.isfinite(number):
                return True, number
        return False, value

    if json_type == "boolean":
        if isinstance(value, bool):
            return True, value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return True, value.strip().lower() == "true"
        return False, value

    return True, value


def _format_error(value: str, fmt: Optional[str]) -> Optional[str]:
    if fmt == "email":
        if not _EMAIL_RE.match(value):
            return "must be a valid email"
    elif fmt == "uri":
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            return "must be a valid URL (e.g., https://api.example.com)"
    elif fmt == "date":
        try:
            date.fromisoformat(value)
        except ValueError:
            return "must be a date (YYYY-MM-DD)"
    elif fmt == "date-time":
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return "must be an ISO 8601 date-time"
    return None


def _is_blank(value: Any) -> bool:
    return value is _MISSING or value is None or value == ""


class ValidationSchema:
    """Compiled rule tree of the active view.

    Attributes:
        tree: Field tree the rules were compiled from
        rule: Root compiled rule
        selections: Active variant index of every reachable union
    """

    def __init__(
        self,
        tree: FieldDescriptor,
        rule: CompiledRule,
        selections: Tuple[Tuple[FieldPath, int], ...] = (),
    ) -> None:
        self.tree = tree
        self.rule = rule
        self.selections = selections

    @property
    def signature(self) -> Tuple[int, Tuple[Tuple[FieldPath, int], ...]]:
        """Tree identity plus active selections; equal signatures mean equal rules."""
        return id(self.tree), self.selections

    def __repr__(self) -> str:
        return f"ValidationSchema(selections={dict(self.selections)!r})"

    def validate(self, values: Any) -> List[ValidationIssue]:
        """Validate values and return issues in declaration order."""
        issues: List[ValidationIssue] = []
        self._validate(self.rule, values, (), issues)
        return issues

    def is_valid(self, values: Any) -> bool:
        return not self.validate(values)

    def cast(self, values: Any, strip_unknown: bool = False) -> Any:
        """Return a sanitized deep copy of ``values``.

        Args:
            values: Value tree
            strip_unknown: Remove keys absent from the active rule tree

        Leaves that cannot be coerced to their declared type are kept as is.
        """
        return self._cast(self.rule, values, strip_unknown)

    def _validate(self, rule: CompiledRule, value: Any, path: FieldPath, issues: List[ValidationIssue]) -> None:
        node = rule.field
        if value is None and node.nullable:
            return

        if rule.kind is FieldKind.PRIMITIVE:
            self._validate_primitive(node, value, path, issues)
            return

        if rule.kind is FieldKind.ARRAY:
            if _is_blank(value) or value == []:
                if node.required:
                    issues.append(ValidationIssue(path, f"{node.label} is required"))
                return
            if not isinstance(value, list):
                issues.append(ValidationIssue(path, f"{node.label} must be a list"))
                return
            for index, item in enumerate(value):
                self._validate(rule.items, item, path + (index,), issues)
            return

        # Objects and unions; an absent object is checked as empty
        if value is _MISSING or value is None:
            value = {}
        if not isinstance(value, Mapping):
            issues.append(ValidationIssue(path, f"{node.label} must be an object"))
            return

        if rule.kind is FieldKind.UNION:
            variant, expected = rule.resolve_variant(value)
            for child in variant.children:
                if child.key == rule.discriminator:
                    self._validate_discriminator(rule.discriminator, expected, value, path, issues)
                else:
                    self._validate(child, value.get(child.key, _MISSING), path + (child.key,), issues)
            return

        for child in rule.children:
            self._validate(child, value.get(child.key, _MISSING), path + (child.key,), issues)

    def _validate_discriminator(
        self,
        key: str,
        expected: Any,
        value: Mapping[str, Any],
        path: FieldPath,
        issues: List[ValidationIssue],
    ) -> None:
        actual = value.get(key, _MISSING)
        if _is_blank(actual):
            issues.append(ValidationIssue(path + (key,), f"{key} is required"))
        elif actual != expected or type(actual) is not type(expected):
            issues.append(ValidationIssue(path + (key,), f"{key} must be {expected!r}"))

    def _validate_primitive(
        self,
        node: FieldDescriptor,
        value: Any,
        path: FieldPath,
        issues: List[ValidationIssue],
    ) -> None:
        label = node.label
        if _is_blank(value):
            if node.required:
                issues.append(ValidationIssue(path, f"{label} is required"))
            return

        ok, coerced = coerce(value, node.type)
        if not ok:
            article = "an" if node.type in ("integer",) else "a"
            issues.append(ValidationIssue(path, f"{label} must be {article} {node.type}"))
            return

        if node.enum is not None and coerced not in node.enum:
            options = ", ".join(str(option) for option in node.enum)
            issues.append(ValidationIssue(path, f"{label} must be one of: {options}"))
            return

        if isinstance(coerced, str):
            error = _format_error(coerced, node.format)
            if error:
                issues.append(ValidationIssue(path, f"{label} {error}"))
                return
            if node.pattern and not re.search(node.pattern, coerced):
                issues.append(ValidationIssue(path, f"{label} must match pattern {node.pattern}"))
                return
            if node.min_length is not None and len(coerced) < node.min_length:
                issues.append(
                    ValidationIssue(path, f"{label} must be at least {node.min_length} characters")
                )
                return
            if node.max_length is not None and len(coerced) > node.max_length:
                issues.append(
                    ValidationIssue(path, f"{label} must be at most {node.max_length} characters")
                )
                return

        if isinstance(coerced, (int, float)) and not isinstance(coerced, bool):
            if node.minimum is not None and coerced < node.minimum:
                issues.append(ValidationIssue(path, f"{label} must be at least {node.minimum}"))
            elif node.maximum is not None and coerced > node.maximum:
                issues.append(ValidationIssue(path, f"{label} must be at most {node.maximum}"))

    def _cast(self, rule: CompiledRule, value: Any, strip_unknown: bool) -> Any:
        if rule.kind is FieldKind.PRIMITIVE:
            if value is None or (value == "" and rule.field.type != "string"):
                return value
            ok, coerced = coerce(value, rule.field.type)
            return coerced if ok else copy.deepcopy(value)

        if rule.kind is FieldKind.ARRAY:
            if not isinstance(value, list):
                return copy.deepcopy(value)
            return [self._cast(rule.items, item, strip_unknown) for item in value]

        if not isinstance(value, Mapping):
            return copy.deepcopy(value)

        known = rule.properties(value)
        result: Dict[str, Any] = {}
        for key, item in value.items():
            if key in known:
                result[key] = self._cast(known[key], item, strip_unknown)
            elif not strip_unknown:
                result[key] = copy.deepcopy(item)
        return result
