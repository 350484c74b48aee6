"""Tests for the canonical schema envelope."""

from __future__ import annotations

import pytest

from connector_form.lib.errors import SchemaError
from connector_form.schema.field_tree import build_field_tree
from connector_form.schema.normalizer import CONNECTION_CONFIGURATION, build_canonical_schema


class TestCanonicalSchema:
    """Envelope construction around a connector schema."""

    def test_without_connector_only_declares_service_type(self) -> None:
        schema = build_canonical_schema(None)
        assert schema["type"] == "object"
        assert list(schema["properties"]) == ["serviceType"]
        assert schema["required"] == ["name", "serviceType"]

    def test_connector_schema_is_wrapped(self, postgres_spec) -> None:
        schema = build_canonical_schema(postgres_spec)
        assert list(schema["properties"]) == ["serviceType", "name", CONNECTION_CONFIGURATION]
        assert schema["properties"]["name"] == {"type": "string"}
        wrapped = schema["properties"][CONNECTION_CONFIGURATION]
        assert wrapped == postgres_spec.connection_specification

    def test_loading_omits_connection_configuration(self, postgres_spec) -> None:
        schema = build_canonical_schema(postgres_spec, is_loading=True)
        assert CONNECTION_CONFIGURATION not in schema["properties"]
        assert "name" in schema["properties"]

    def test_returns_new_object_each_call(self, postgres_spec) -> None:
        first = build_canonical_schema(postgres_spec)
        second = build_canonical_schema(postgres_spec)
        assert first == second
        assert first is not second
        assert (
            first["properties"][CONNECTION_CONFIGURATION]
            is not postgres_spec.connection_specification
        )

    def test_raw_schema_without_type_becomes_object(self) -> None:
        schema = build_canonical_schema({"properties": {"host": {"type": "string"}}})
        assert schema["properties"][CONNECTION_CONFIGURATION]["type"] == "object"

    def test_only_the_configuration_root_may_omit_type(self) -> None:
        schema = build_canonical_schema({"properties": {"host": {"title": "Host"}}})
        with pytest.raises(SchemaError) as exc_info:
            build_field_tree(schema)
        assert exc_info.value.path == (CONNECTION_CONFIGURATION, "host")
        assert exc_info.value.keyword == "type"


def test_public_names():
    import connector_form.schema.normalizer as normalizer

    assert normalizer.__all__ == ["CONNECTION_CONFIGURATION", "build_canonical_schema"]
    assert not hasattr(normalizer, "ENVELOPE_KEYS")
