"""Form state: widget metadata, value patching, revalidation and the session."""

from connector_form.form.patcher import patch_values
from connector_form.form.rendering import build_render_table
from connector_form.form.revalidation import RevalidationTrigger
from connector_form.form.session import ServiceFormSession
from connector_form.form.widget_store import WidgetMetadataStore

__all__ = [
    "RevalidationTrigger",
    "ServiceFormSession",
    "WidgetMetadataStore",
    "build_render_table",
    "patch_values",
]
