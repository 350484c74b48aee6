"""Schema interpretation: canonical envelope, field tree and validation rules."""

from connector_form.schema.field_tree import FormBuild, build_field_tree, build_form, build_initial_values
from connector_form.schema.normalizer import CONNECTION_CONFIGURATION, build_canonical_schema
from connector_form.schema.validation import (
    CompiledRule,
    ValidationIssue,
    ValidationSchema,
    build_validation_schema,
)

__all__ = [
    "CONNECTION_CONFIGURATION",
    "CompiledRule",
    "FormBuild",
    "ValidationIssue",
    "ValidationSchema",
    "build_canonical_schema",
    "build_field_tree",
    "build_form",
    "build_initial_values",
    "build_validation_schema",
]
