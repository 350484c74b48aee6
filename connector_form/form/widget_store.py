"""Widget metadata store: per-path UI state derived from the field tree.

The store is the only owner of its entries. Callers change them through
:meth:`WidgetMetadataStore.merge`, :meth:`WidgetMetadataStore.select_variant`
and :meth:`WidgetMetadataStore.reset`; every change publishes a new read-only
snapshot object, so derivations can tell a stale snapshot from a fresh one by
identity.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from connector_form.lib.paths import FieldPath, as_path, get_in, path_key
from connector_form.models.field_descriptor import FieldDescriptor, FieldKind
from connector_form.models.widget_info import RenderOverride, WidgetInfo
from connector_form.schema.validation import ValidationSchema, compile_rule
from connector_form.schema.variants import match_variant

logger = logging.getLogger(__name__)

__all__ = ["WidgetMetadataStore"]

PathLike = Union[str, Iterable[Union[str, int]]]
OverrideLike = Union[RenderOverride, Mapping[str, Any]]


def _to_override(value: OverrideLike) -> RenderOverride:
    if isinstance(value, RenderOverride):
        return value
    if isinstance(value, Mapping) and "component" in value:
        return RenderOverride(component=value["component"], params=dict(value.get("params") or {}))
    raise TypeError(f"Expected RenderOverride or mapping with 'component', got {value!r}")


class WidgetMetadataStore:
    """Per-path widget metadata of the current canonical schema.

    Example:
        >>> store = WidgetMetadataStore(build.tree, build.initial_values)
        >>> store.select_variant("connectionConfiguration.auth", 1)
        >>> store.snapshot[("connectionConfiguration", "auth")].selected_item
        1
    """

    def __init__(
        self,
        tree: FieldDescriptor,
        values: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[PathLike, OverrideLike]] = None,
        *,
        edit_mode: bool = False,
        selections: Optional[Mapping[PathLike, int]] = None,
    ) -> None:
        self.edit_mode = edit_mode
        self._tree = tree
        self._known_paths: frozenset = frozenset()
        self._unions: Dict[FieldPath, FieldDescriptor] = {}
        self._entries: Dict[FieldPath, WidgetInfo] = {}
        self._snapshot: Mapping[FieldPath, WidgetInfo] = MappingProxyType({})
        self.reset(tree, values, overrides, selections)

    @property
    def tree(self) -> FieldDescriptor:
        return self._tree

    @property
    def snapshot(self) -> Mapping[FieldPath, WidgetInfo]:
        """Read-only view of all entries; replaced on every change."""
        return self._snapshot

    def get(self, path: PathLike) -> Optional[WidgetInfo]:
        return self._entries.get(as_path(path))

    def paths(self) -> List[FieldPath]:
        return list(self._entries)

    def selections(self) -> Dict[FieldPath, int]:
        """Active variant index of every union entry."""
        return {
            path: info.selected_item
            for path, info in self._entries.items()
            if info.selected_item is not None
        }

    def merge(self, path: PathLike, **changes: Any) -> bool:
        """Shallow-merge ``changes`` into the entry at ``path``.

        Paths unknown to the current tree are dropped.

        Returns:
            True if the entry was updated
        """
        key = as_path(path)
        if key not in self._known_paths:
            logger.debug("Dropping widget update for unknown path %s", path_key(key))
            return False
        if changes.get("override") is not None:
            changes["override"] = _to_override(changes["override"])

        entries = dict(self._entries)
        entries[key] = entries.get(key, WidgetInfo()).merged(**changes)
        self._commit(entries)
        return True

    def select_variant(self, path: PathLike, index: int) -> None:
        """Mark ``index`` as the active variant of the union at ``path``.

        Raises:
            ValueError: If ``path`` is not a union or ``index`` is out of range
        """
        key = as_path(path)
        node = self._unions.get(key)
        if node is None:
            raise ValueError(f"{path_key(key) or '<root>'} is not a oneOf field")
        if not 0 <= index < len(node.variants):
            raise ValueError(
                f"Variant index {index} out of range for {path_key(key)} "
                f"({len(node.variants)} variants)"
            )
        self.merge(key, selected_item=index)

    def reset(
        self,
        tree: FieldDescriptor,
        values: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[PathLike, OverrideLike]] = None,
        selections: Optional[Mapping[PathLike, int]] = None,
    ) -> None:
        """Discard every entry and recompute the store from ``tree``.

        Overrides are discarded too; pass them again to keep them. Overrides
        and selections for paths missing from ``tree`` are dropped.

        Args:
            tree: Field tree of the current canonical schema
            values: Current form values, used to match union variants
            overrides: Render overrides by path
            selections: Variant indices taking precedence over value matching
        """
        self._tree = tree
        self._known_paths = tree.paths()
        self._unions = {
            node.path: node for node in tree.walk() if node.kind is FieldKind.UNION
        }

        requested = {as_path(p): i for p, i in (selections or {}).items()}
        entries: Dict[FieldPath, WidgetInfo] = {}
        self._seed(tree, values or {}, requested, entries)

        for path, override in (overrides or {}).items():
            key = as_path(path)
            if key not in self._known_paths:
                logger.debug("Dropping render override for unknown path %s", path_key(key))
                continue
            entries[key] = entries.get(key, WidgetInfo()).merged(override=_to_override(override))

        self._commit(entries)
        logger.debug("Widget store reset with %d entries", len(entries))

    def _commit(self, entries: Dict[FieldPath, WidgetInfo]) -> None:
        self._entries = entries
        self._snapshot = MappingProxyType(dict(entries))

    def _seed(
        self,
        node: FieldDescriptor,
        values: Mapping[str, Any],
        requested: Mapping[FieldPath, int],
        entries: Dict[FieldPath, WidgetInfo],
    ) -> None:
        if node.kind is FieldKind.UNION:
            index = self._choose_variant(node, values, requested)
            entries[node.path] = WidgetInfo(selected_item=index)
            self._seed(node.variants[index], values, requested, entries)
            return

        if node.has_const or node.has_default:
            info = entries.get(node.path, WidgetInfo())
            entries[node.path] = info.merged(const=node.const, default=node.default)

        if node.kind is FieldKind.OBJECT:
            for child in node.children:
                self._seed(child, values, requested, entries)

    def _choose_variant(
        self,
        node: FieldDescriptor,
        values: Mapping[str, Any],
        requested: Mapping[FieldPath, int],
    ) -> int:
        index = requested.get(node.path)
        if isinstance(index, int) and 0 <= index < len(node.variants):
            return index

        local = get_in(values, node.path)
        index = match_variant(node, local)
        if index is not None:
            return index

        if self.edit_mode and isinstance(local, Mapping):
            index = self._structural_match(node, local)
            if index is not None:
                return index
            logger.warning(
                "No oneOf variant of %s matches the stored values; selecting the first",
                path_key(node.path),
            )
        return 0

    def _structural_match(self, node: FieldDescriptor, local: Mapping[str, Any]) -> Optional[int]:
        """First variant whose rules accept the stored values, discriminator aside."""
        for index, variant in enumerate(node.variants):
            rules = ValidationSchema(variant, compile_rule(variant, {}))
            issues = [
                issue for issue in rules.validate(local)
                if issue.path != (node.discriminator,)
            ]
            if not issues:
                return index
        return None
