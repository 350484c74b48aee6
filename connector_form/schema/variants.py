"""Union ("oneOf") variant helpers shared by the tree walkers."""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Optional, Sequence

from connector_form.lib.errors import SchemaError
from connector_form.lib.paths import FieldPath
from connector_form.models.field_descriptor import FieldDescriptor, FieldKind

__all__ = [
    "find_discriminator",
    "match_variant",
    "active_variant_index",
    "iter_active",
]


def _same_constant(a: Any, b: Any) -> bool:
    # True == 1 in Python; a boolean constant must not match an integer one
    return type(a) is type(b) and a == b


def find_discriminator(variants: Sequence[FieldDescriptor], path: FieldPath) -> str:
    """Find the property whose constant tells the variants apart.

    The first property, in the first variant's declared order, that every
    variant declares with a pairwise distinct ``const`` wins.

    Raises:
        SchemaError: If no such property exists
    """
    if not variants:
        raise SchemaError("oneOf must declare at least one variant", path=path, keyword="oneOf")

    for candidate in variants[0].children:
        consts = []
        for variant in variants:
            try:
                prop = variant.child(candidate.key)
            except KeyError:
                break
            if not prop.has_const:
                break
            consts.append(prop.const)
        else:
            distinct = all(
                not _same_constant(a, b)
                for i, a in enumerate(consts)
                for b in consts[i + 1:]
            )
            if distinct:
                return str(candidate.key)

    raise SchemaError(
        "oneOf variants lack a shared discriminator property with a distinct const per variant",
        path=path,
        keyword="oneOf",
        suggestion='Give every variant a property like {"mode": {"type": "string", "const": "..."}}',
    )


def match_variant(node: FieldDescriptor, value: Any) -> Optional[int]:
    """Index of the variant whose discriminator constant equals the value's.

    Args:
        node: Union descriptor
        value: Value found at the union's path
    """
    if not isinstance(value, Mapping) or node.discriminator not in value:
        return None
    actual = value[node.discriminator]
    for index, const in enumerate(node.variant_consts):
        if _same_constant(actual, const):
            return index
    return None


def active_variant_index(node: FieldDescriptor, widgets: Mapping[FieldPath, Any]) -> int:
    """Selected variant of a union according to the widget snapshot.

    Falls back to the first variant when the snapshot has no usable entry, so
    exactly one variant is always active.
    """
    info = widgets.get(node.path)
    selected = getattr(info, "selected_item", None)
    if isinstance(selected, int) and 0 <= selected < len(node.variants):
        return selected
    return 0


def iter_active(
    node: FieldDescriptor,
    widgets: Mapping[FieldPath, Any],
    include_items: bool = True,
) -> Iterator[FieldDescriptor]:
    """Yield the nodes of the active view depth-first.

    Inactive union variants are skipped; a union yields itself followed by
    its active variant's subtree.
    """
    yield node
    if node.kind is FieldKind.OBJECT:
        for child in node.children:
            yield from iter_active(child, widgets, include_items)
    elif node.kind is FieldKind.UNION:
        variant = node.variants[active_variant_index(node, widgets)]
        yield from iter_active(variant, widgets, include_items)
    elif node.kind is FieldKind.ARRAY and include_items and node.items is not None:
        yield from iter_active(node.items, widgets, include_items)
