"""Schema-driven connector configuration forms.

This package turns a connector's configuration schema into a field tree,
compiled validation rules and working values, and keeps the three consistent
while the user switches connectors or oneOf branches.

Usage:
    python -m connector_form postgres.yaml               # Check a new form
    python -m connector_form postgres.yaml --values cfg.yaml --edit
"""

from connector_form.form.session import ServiceFormSession
from connector_form.lib.errors import DefinitionError, FormError, SchemaError, SubmissionError
from connector_form.models.connector import ConnectorSpecification
from connector_form.models.field_descriptor import FieldDescriptor, FieldKind
from connector_form.schema.validation import ValidationIssue

__version__ = "0.1.0"

__all__ = [
    "ConnectorSpecification",
    "DefinitionError",
    "FieldDescriptor",
    "FieldKind",
    "FormError",
    "SchemaError",
    "ServiceFormSession",
    "SubmissionError",
    "ValidationIssue",
]
