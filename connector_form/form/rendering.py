"""Resolve the render capability of every visible path."""

from __future__ import annotations

from typing import Dict, Mapping

from connector_form.lib.paths import FieldPath
from connector_form.models.field_descriptor import FieldDescriptor
from connector_form.models.widget_info import RenderCapability, WidgetInfo
from connector_form.schema.variants import iter_active

__all__ = ["build_render_table"]


def build_render_table(
    tree: FieldDescriptor,
    widgets: Mapping[FieldPath, WidgetInfo],
) -> Dict[FieldPath, RenderCapability]:
    """Map each path of the active view to its render capability.

    Resolve once per render pass; paths without an override get the default
    capability.
    """
    table: Dict[FieldPath, RenderCapability] = {}
    for node in iter_active(tree, widgets):
        if node.path not in table:
            table[node.path] = RenderCapability.from_widget(widgets.get(node.path))
    return table
