"""Shared fixtures for connector form tests."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from connector_form.lib.settings import FormSettings
from connector_form.models.connector import ConnectorSpecification

MODE_UNION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "oneOf": [
        {
            "type": "object",
            "title": "A",
            "required": ["mode", "fieldA"],
            "properties": {
                "mode": {"type": "string", "const": "A"},
                "fieldA": {"type": "string"},
            },
        },
        {
            "type": "object",
            "title": "B",
            "required": ["mode", "fieldB"],
            "properties": {
                "mode": {"type": "string", "const": "B"},
                "fieldB": {"type": "string"},
            },
        },
    ],
}

POSTGRES_DEFINITION: Dict[str, Any] = {
    "sourceDefinitionId": "postgres",
    "name": "Postgres",
    "documentationUrl": "https://docs.example.com/postgres",
    "connectionSpecification": {
        "type": "object",
        "required": ["host", "port"],
        "properties": {
            "host": {"type": "string", "title": "Host"},
            "port": {"type": "integer", "default": 5432, "minimum": 0, "maximum": 65536},
            "region": {"type": "string", "const": "us-east-1"},
            "password": {"type": "string", "airbyte_secret": True},
            "auth": {
                "type": "object",
                "properties": {
                    "token": {"type": "string", "default": "changeme"},
                },
            },
            "ssl_mode": {
                "type": "object",
                "title": "SSL mode",
                "oneOf": [
                    {
                        "type": "object",
                        "title": "disable",
                        "required": ["mode"],
                        "properties": {
                            "mode": {"type": "string", "const": "disable"},
                        },
                    },
                    {
                        "type": "object",
                        "title": "verify-ca",
                        "required": ["mode", "ca_certificate"],
                        "properties": {
                            "mode": {"type": "string", "const": "verify-ca"},
                            "ca_certificate": {"type": "string"},
                            "client_key_password": {"type": "string", "default": "none"},
                        },
                    },
                ],
            },
            "schemas": {"type": "array", "items": {"type": "string"}},
        },
    },
}

FILE_DEFINITION: Dict[str, Any] = {
    "sourceDefinitionId": "file",
    "name": "File",
    "connectionSpecification": {
        "type": "object",
        "required": ["url"],
        "properties": {
            "url": {"type": "string", "format": "uri"},
            "format": {"type": "string", "enum": ["csv", "json"], "default": "csv"},
        },
    },
}


@pytest.fixture
def settings() -> FormSettings:
    """Settings independent of the process environment."""
    return FormSettings(
        log_level="INFO",
        log_format="console",
        strip_unknown_on_submit=True,
        validate_on_change=True,
    )


@pytest.fixture
def union_schema() -> Dict[str, Any]:
    return copy.deepcopy(MODE_UNION_SCHEMA)


@pytest.fixture
def postgres_spec() -> ConnectorSpecification:
    return ConnectorSpecification.model_validate(copy.deepcopy(POSTGRES_DEFINITION))


@pytest.fixture
def file_spec() -> ConnectorSpecification:
    return ConnectorSpecification.model_validate(copy.deepcopy(FILE_DEFINITION))


@pytest.fixture
def union_spec() -> ConnectorSpecification:
    return ConnectorSpecification.model_validate(
        {
            "sourceDefinitionId": "modes",
            "name": "Modes",
            "connectionSpecification": copy.deepcopy(MODE_UNION_SCHEMA),
        }
    )


@pytest.fixture
def postgres_yaml(tmp_path: Path) -> Path:
    """Write the Postgres definition to a YAML file."""
    path = tmp_path / "postgres.yaml"
    path.write_text(yaml.safe_dump(POSTGRES_DEFINITION, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def restore_logging():
    """Restore root logger handlers and level changed by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
