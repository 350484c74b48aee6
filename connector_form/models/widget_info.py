"""Per-path UI metadata for the form widgets."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from connector_form.models.field_descriptor import UNSET

__all__ = [
    "RenderOverride",
    "WidgetInfo",
    "RenderMode",
    "RenderCapability",
]


@dataclass(frozen=True)
class RenderOverride:
    """Alternate render capability supplied for a path.

    Attributes:
        component: Opaque reference the rendering layer knows how to call
        params: Extra parameters handed to the component
    """

    component: Any
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WidgetInfo:
    """UI metadata of one path.

    Attributes:
        selected_item: Active variant index (union paths only)
        const: Constant enforced at the path, or UNSET
        default: Default filled in when the path has no value, or UNSET
        override: Render override, if any
    """

    selected_item: Optional[int] = None
    const: Any = UNSET
    default: Any = UNSET
    override: Optional[RenderOverride] = None

    @property
    def has_const(self) -> bool:
        return self.const is not UNSET

    @property
    def has_default(self) -> bool:
        return self.default is not UNSET

    def merged(self, **changes: Any) -> "WidgetInfo":
        """Return a copy with ``changes`` applied (shallow merge)."""
        return dataclasses.replace(self, **changes)


class RenderMode(str, Enum):
    """How a path is rendered."""

    DEFAULT = "default"
    OVERRIDDEN = "overridden"


@dataclass(frozen=True)
class RenderCapability:
    """Resolved render capability of one path."""

    mode: RenderMode = RenderMode.DEFAULT
    component: Any = None
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_widget(cls, info: Optional[WidgetInfo]) -> "RenderCapability":
        if info is None or info.override is None:
            return cls()
        return cls(
            mode=RenderMode.OVERRIDDEN,
            component=info.override.component,
            params=MappingProxyType(dict(info.override.params)),
        )

    @property
    def is_overridden(self) -> bool:
        return self.mode is RenderMode.OVERRIDDEN
