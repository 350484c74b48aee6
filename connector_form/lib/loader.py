"""Load connector definitions and form values from YAML or JSON documents.

Example definition (postgres.yaml):
    sourceDefinitionId: postgres
    name: Postgres
    documentationUrl: https://docs.example.com/postgres
    connectionSpecification:
      type: object
      required: [host]
      properties:
        host: {type: string, title: Host}
        port: {type: integer, default: 5432}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from connector_form.lib.errors import DefinitionError
from connector_form.models.connector import ConnectorSpecification

logger = logging.getLogger(__name__)

__all__ = [
    "parse_specification",
    "load_specification",
    "load_values",
]


def parse_specification(
    data: Union[ConnectorSpecification, Mapping[str, Any]],
    source: Optional[str] = None,
) -> ConnectorSpecification:
    """Validate a raw connector definition.

    Raises:
        DefinitionError: If the document does not describe a connector
    """
    if isinstance(data, ConnectorSpecification):
        return data
    if not isinstance(data, Mapping):
        raise DefinitionError(
            f"Connector definition must be a mapping, got {type(data).__name__}",
            source=source,
        )
    try:
        return ConnectorSpecification.model_validate(dict(data))
    except ValidationError as e:
        raise DefinitionError(
            "Invalid connector definition",
            source=source,
            cause=e,
            suggestion="Provide a definition id, a name and a connectionSpecification object",
        ) from e


def _read_document(path: Union[str, Path]) -> Any:
    path = Path(path)
    if not path.exists():
        raise DefinitionError(f"File not found: {path}", source=str(path))
    try:
        with open(path, encoding="utf-8") as f:
            # JSON is a subset of YAML, so one loader covers both
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DefinitionError(f"Invalid YAML/JSON in {path}", source=str(path), cause=e) from e


def load_specification(path: Union[str, Path]) -> ConnectorSpecification:
    """Load a connector definition file."""
    data = _read_document(path)
    spec = parse_specification(data, source=str(path))
    logger.debug("Loaded connector definition %s from %s", spec.definition_id, path)
    return spec


def load_values(path: Union[str, Path]) -> Dict[str, Any]:
    """Load stored form values (edit mode) from a file."""
    data = _read_document(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DefinitionError(
            f"Form values must be a mapping, got {type(data).__name__}",
            source=str(path),
        )
    return data
