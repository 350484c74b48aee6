"""Tests for compiled validation rules."""

from __future__ import annotations

import pytest

from connector_form.form.widget_store import WidgetMetadataStore
from connector_form.models.widget_info import WidgetInfo
from connector_form.schema.field_tree import build_field_tree
from connector_form.schema.validation import (
    ValidationIssue,
    build_validation_schema,
    coerce,
)

TARGETS_SCHEMA = {
    "type": "object",
    "properties": {
        "targets": {
            "type": "array",
            "items": {
                "oneOf": [
                    {
                        "type": "object",
                        "required": ["kind", "bucket"],
                        "properties": {
                            "kind": {"type": "string", "const": "s3"},
                            "bucket": {"type": "string"},
                        },
                    },
                    {
                        "type": "object",
                        "required": ["kind", "project"],
                        "properties": {
                            "kind": {"type": "string", "const": "gcs"},
                            "project": {"type": "string"},
                        },
                    },
                ]
            },
        }
    },
}


def _messages(issues):
    return [(issue.path, issue.message) for issue in issues]


class TestUnionRules:
    """Only the active variant is compiled."""

    def test_selected_variant_requires_its_fields(self, union_schema) -> None:
        tree = build_field_tree(union_schema)
        schema = build_validation_schema(tree, {(): WidgetInfo(selected_item=1)})
        assert schema.validate({"mode": "B"}) == [
            ValidationIssue(("fieldB",), "fieldB is required")
        ]

    def test_discriminator_must_match_active_variant(self, union_schema) -> None:
        tree = build_field_tree(union_schema)
        schema = build_validation_schema(tree, {(): WidgetInfo(selected_item=0)})
        assert _messages(schema.validate({"mode": "B"})) == [
            (("mode",), "mode must be 'A'"),
            (("fieldA",), "fieldA is required"),
        ]

    def test_inactive_variant_fields_are_ignored(self, union_schema) -> None:
        tree = build_field_tree(union_schema)
        schema = build_validation_schema(tree, {(): WidgetInfo(selected_item=0)})
        assert schema.is_valid({"mode": "A", "fieldA": "a", "fieldB": 42})

    def test_missing_widget_entry_selects_first_variant(self, union_schema) -> None:
        tree = build_field_tree(union_schema)
        schema = build_validation_schema(tree, {})
        assert schema.selections == (((), 0),)

    def test_array_item_unions_resolve_per_item(self) -> None:
        tree = build_field_tree(TARGETS_SCHEMA)
        schema = build_validation_schema(tree, {})
        issues = schema.validate(
            {"targets": [{"kind": "s3", "bucket": "b"}, {"kind": "gcs"}]}
        )
        assert _messages(issues) == [(("targets", 1, "project"), "project is required")]

    def test_array_item_cast_strips_by_item_variant(self) -> None:
        tree = build_field_tree(TARGETS_SCHEMA)
        schema = build_validation_schema(tree, {})
        cast = schema.cast(
            {"targets": [{"kind": "gcs", "project": "p", "bucket": "b"}]},
            strip_unknown=True,
        )
        assert cast == {"targets": [{"kind": "gcs", "project": "p"}]}


class TestSchemaIdentity:
    """A new rules object only when the rules change."""

    def test_same_selection_returns_previous(self, union_schema) -> None:
        tree = build_field_tree(union_schema)
        first = build_validation_schema(tree, {(): WidgetInfo(selected_item=1)})
        second = build_validation_schema(tree, {(): WidgetInfo(selected_item=1)}, previous=first)
        assert second is first
        assert first.signature == (id(tree), (((), 1),))

    def test_new_selection_returns_new_schema(self, union_schema) -> None:
        tree = build_field_tree(union_schema)
        first = build_validation_schema(tree, {(): WidgetInfo(selected_item=0)})
        second = build_validation_schema(tree, {(): WidgetInfo(selected_item=1)}, previous=first)
        assert second is not first

    def test_new_tree_returns_new_schema(self, union_schema) -> None:
        first = build_validation_schema(build_field_tree(union_schema), {})
        second = build_validation_schema(build_field_tree(union_schema), {}, previous=first)
        assert second is not first


class TestFieldRules:
    """Primitive checks and messages."""

    @pytest.fixture
    def postgres_rules(self, postgres_spec):
        tree = build_field_tree(postgres_spec.connection_specification)
        store = WidgetMetadataStore(tree, {})
        return build_validation_schema(tree, store.snapshot)

    @pytest.fixture
    def file_rules(self, file_spec):
        tree = build_field_tree(file_spec.connection_specification)
        return build_validation_schema(tree, {})

    def test_required_fields_in_declaration_order(self, postgres_rules) -> None:
        assert _messages(postgres_rules.validate({})) == [
            (("host",), "Host is required"),
            (("port",), "port is required"),
            (("ssl_mode", "mode"), "mode is required"),
        ]

    def test_blank_string_counts_as_missing(self, postgres_rules) -> None:
        issues = postgres_rules.validate({"host": "", "port": 1, "ssl_mode": {"mode": "disable"}})
        assert _messages(issues) == [(("host",), "Host is required")]

    def test_numeric_string_is_coerced(self, postgres_rules) -> None:
        values = {"host": "db", "port": "5433", "ssl_mode": {"mode": "disable"}}
        assert postgres_rules.is_valid(values)

    def test_type_mismatch(self, postgres_rules) -> None:
        values = {"host": "db", "port": "abc", "ssl_mode": {"mode": "disable"}}
        assert _messages(postgres_rules.validate(values)) == [
            (("port",), "port must be an integer")
        ]

    def test_numeric_bounds(self, postgres_rules) -> None:
        values = {"host": "db", "port": 70000, "ssl_mode": {"mode": "disable"}}
        assert _messages(postgres_rules.validate(values)) == [
            (("port",), "port must be at most 65536")
        ]

    def test_enum(self, file_rules) -> None:
        issues = file_rules.validate({"url": "https://example.com/data.csv", "format": "xml"})
        assert _messages(issues) == [(("format",), "format must be one of: csv, json")]

    def test_uri_format(self, file_rules) -> None:
        issues = file_rules.validate({"url": "data.csv"})
        assert _messages(issues) == [
            (("url",), "url must be a valid URL (e.g., https://api.example.com)")
        ]

    def test_required_empty_array(self) -> None:
        tree = build_field_tree(
            {
                "type": "object",
                "required": ["tags"],
                "properties": {"tags": {"type": "array", "items": {"type": "string"}}},
            }
        )
        schema = build_validation_schema(tree, {})
        assert _messages(schema.validate({"tags": []})) == [(("tags",), "tags is required")]
        assert schema.is_valid({"tags": ["a"]})

    @pytest.mark.parametrize(
        "fmt,value,valid",
        [
            ("email", "ops@example.com", True),
            ("email", "ops@example", False),
            ("date", "2024-02-29", True),
            ("date", "2024-13-01", False),
            ("date-time", "2024-02-29T10:00:00Z", True),
            ("date-time", "yesterday", False),
        ],
    )
    def test_string_formats(self, fmt, value, valid) -> None:
        tree = build_field_tree(
            {"type": "object", "properties": {"value": {"type": "string", "format": fmt}}}
        )
        schema = build_validation_schema(tree, {})
        assert schema.is_valid({"value": value}) is valid

    def test_pattern_and_length(self) -> None:
        tree = build_field_tree(
            {
                "type": "object",
                "properties": {
                    "code": {"type": "string", "pattern": "^[A-Z]+$", "maxLength": 3},
                },
            }
        )
        schema = build_validation_schema(tree, {})
        assert _messages(schema.validate({"code": "ab"})) == [
            (("code",), "code must match pattern ^[A-Z]+$")
        ]
        assert _messages(schema.validate({"code": "ABCD"})) == [
            (("code",), "code must be at most 3 characters")
        ]

    def test_nullable_required_field_accepts_none(self) -> None:
        tree = build_field_tree(
            {
                "type": "object",
                "required": ["note"],
                "properties": {"note": {"type": ["string", "null"], "minLength": 2}},
            }
        )
        schema = build_validation_schema(tree, {})
        assert schema.validate({"note": None}) == []
        assert _messages(schema.validate({})) == [(("note",), "note is required")]
        assert _messages(schema.validate({"note": "a"})) == [
            (("note",), "note must be at least 2 characters")
        ]

    def test_issue_string_uses_dotted_path(self) -> None:
        issue = ValidationIssue(("connectionConfiguration", "host"), "Host is required")
        assert str(issue) == "connectionConfiguration.host: Host is required"
        assert str(ValidationIssue((), "value must be an object")) == "<root>: value must be an object"


class TestCast:
    """Sanitized copies of the values."""

    @pytest.fixture
    def rules(self, postgres_spec):
        tree = build_field_tree(postgres_spec.connection_specification)
        return build_validation_schema(tree, {})

    def test_strip_unknown_removes_undeclared_keys(self, rules) -> None:
        values = {
            "host": "db",
            "port": "5433",
            "extra": 1,
            "ssl_mode": {"mode": "disable", "ca_certificate": "pem"},
        }
        assert rules.cast(values, strip_unknown=True) == {
            "host": "db",
            "port": 5433,
            "ssl_mode": {"mode": "disable"},
        }

    def test_cast_keeps_unknown_keys_by_default(self, rules) -> None:
        values = {"port": "5433", "extra": 1}
        assert rules.cast(values) == {"port": 5433, "extra": 1}

    def test_cast_keeps_uncoercible_values(self, rules) -> None:
        assert rules.cast({"port": "abc"}) == {"port": "abc"}

    def test_cast_does_not_mutate_input(self, rules) -> None:
        values = {"port": "5433", "ssl_mode": {"mode": "disable"}}
        rules.cast(values, strip_unknown=True)
        assert values == {"port": "5433", "ssl_mode": {"mode": "disable"}}


@pytest.mark.parametrize(
    "value,json_type,expected",
    [
        ("42", "integer", (True, 42)),
        ("42.0", "integer", (True, 42)),
        (4.5, "integer", (False, 4.5)),
        (True, "integer", (False, True)),
        ("1.5", "number", (True, 1.5)),
        ("nan", "number", (False, "nan")),
        ("TRUE", "boolean", (True, True)),
        ("yes", "boolean", (False, "yes")),
        (5432, "string", (True, "5432")),
    ],
)
def test_coerce(value, json_type, expected):
    assert coerce(value, json_type) == expected
