"""Connector definition model.

A connector definition pairs catalog metadata (id, display name) with the
JSON-Schema-like ``connectionSpecification`` that drives the form.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

__all__ = ["ConnectorSpecification"]


class ConnectorSpecification(BaseModel):
    """Pydantic model for a connector definition specification.

    Accepts both snake_case keys and the camelCase keys used by connector
    catalogs.

    Example:
        >>> spec = ConnectorSpecification.model_validate({
        ...     "sourceDefinitionId": "postgres",
        ...     "name": "Postgres",
        ...     "connectionSpecification": {"type": "object", "properties": {}},
        ... })
        >>> spec.definition_id
        'postgres'
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    definition_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices(
            "definition_id", "sourceDefinitionId", "destinationDefinitionId"
        ),
        description="Connector definition identifier (the form's serviceType)",
    )
    name: str = Field(..., min_length=1, description="Connector display name")
    connection_specification: Dict[str, Any] = Field(
        ...,
        validation_alias=AliasChoices("connection_specification", "connectionSpecification"),
        description="Schema of the connector configuration",
    )
    documentation_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("documentation_url", "documentationUrl"),
    )
    icon: Optional[str] = None
    release_stage: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("release_stage", "releaseStage"),
    )

    @field_validator("connection_specification")
    @classmethod
    def validate_object_schema(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """The configuration schema must describe an object."""
        schema_type = v.get("type", "object")
        if schema_type != "object":
            raise ValueError(
                f"connectionSpecification must have type 'object', got {schema_type!r}"
            )
        return v
