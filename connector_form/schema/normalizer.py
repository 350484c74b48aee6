"""Wrap a connector schema into the canonical form envelope."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Mapping, Optional, Union

from connector_form.models.connector import ConnectorSpecification

logger = logging.getLogger(__name__)

__all__ = [
    "CONNECTION_CONFIGURATION",
    "build_canonical_schema",
]

CONNECTION_CONFIGURATION = "connectionConfiguration"


def build_canonical_schema(
    specification: Optional[Union[ConnectorSpecification, Mapping[str, Any]]] = None,
    *,
    is_loading: bool = False,
) -> Dict[str, Any]:
    """Build the envelope schema around a connector configuration schema.

    ``name`` is only declared once a connector is selected, and
    ``connectionConfiguration`` is left out while the specification is still
    loading. A new dict is returned on every call.

    Args:
        specification: Selected connector, or its raw ``connectionSpecification``
        is_loading: Whether the connector specification is still being fetched

    Returns:
        Canonical schema with the ``serviceType``/``name``/``connectionConfiguration``
        envelope
    """
    if isinstance(specification, ConnectorSpecification):
        connection_schema: Optional[Mapping[str, Any]] = specification.connection_specification
    else:
        connection_schema = specification

    properties: Dict[str, Any] = {"serviceType": {"type": "string"}}
    if connection_schema is not None:
        properties["name"] = {"type": "string"}
        if not is_loading:
            wrapped = copy.deepcopy(dict(connection_schema))
            # Only the configuration root may omit its type
            wrapped.setdefault("type", "object")
            properties[CONNECTION_CONFIGURATION] = wrapped

    logger.debug(
        "Built canonical schema (connector=%s, loading=%s)",
        getattr(specification, "definition_id", None),
        is_loading,
    )

    return {
        "type": "object",
        "properties": properties,
        "required": ["name", "serviceType"],
    }
