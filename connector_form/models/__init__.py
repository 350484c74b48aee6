"""UI-agnostic data models of the connector form.

These classes carry no rendering dependencies so the whole form pipeline can
be tested without a UI harness.
"""

from connector_form.models.connector import ConnectorSpecification
from connector_form.models.field_descriptor import UNSET, FieldDescriptor, FieldKind
from connector_form.models.widget_info import (
    RenderCapability,
    RenderMode,
    RenderOverride,
    WidgetInfo,
)

__all__ = [
    "UNSET",
    "ConnectorSpecification",
    "FieldDescriptor",
    "FieldKind",
    "RenderCapability",
    "RenderMode",
    "RenderOverride",
    "WidgetInfo",
]
