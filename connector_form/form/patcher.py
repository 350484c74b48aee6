"""Enforce constants and fill defaults in the live form values.

Runs whenever the schema view changes. Only the ``connectionConfiguration``
subtree is rewritten; the envelope fields are left alone.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Mapping, Optional

from connector_form.lib.paths import FieldPath, has_value, path_key, set_in
from connector_form.models.field_descriptor import FieldDescriptor
from connector_form.models.widget_info import WidgetInfo
from connector_form.schema.normalizer import CONNECTION_CONFIGURATION

logger = logging.getLogger(__name__)

__all__ = ["patch_values"]


def patch_values(
    values: Mapping[str, Any],
    widgets: Mapping[FieldPath, WidgetInfo],
    tree: Optional[FieldDescriptor] = None,
) -> Dict[str, Any]:
    """Return a copy of ``values`` with constants and defaults applied.

    Step 1 writes every constant, overwriting whatever is there. Step 2
    writes every default whose path still has no value (missing or None).

    Args:
        values: Live form values
        widgets: Widget metadata snapshot
        tree: Current field tree; entries for paths it does not declare are
            dropped

    Returns:
        Patched copy of the values
    """
    patched: Dict[str, Any] = copy.deepcopy(dict(values))
    known = tree.paths() if tree is not None else None

    entries = []
    for path, info in widgets.items():
        if not path or path[0] != CONNECTION_CONFIGURATION:
            continue
        if known is not None and path not in known:
            logger.debug("Skipping stale widget entry %s", path_key(path))
            continue
        entries.append((path, info))

    for path, info in entries:
        if info.has_const:
            _write(patched, path, info.const)

    for path, info in entries:
        if info.has_default and not has_value(patched, path):
            _write(patched, path, info.default)

    return patched


def _write(values: Dict[str, Any], path: FieldPath, value: Any) -> None:
    if not set_in(values, path, copy.deepcopy(value)):
        logger.debug("Dropping value for %s; parent is not an object", path_key(path))
