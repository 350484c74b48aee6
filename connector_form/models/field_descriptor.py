"""Field descriptor tree produced from a connector schema.

Every node is tagged with a :class:`FieldKind`; tree walkers dispatch on the
tag. Union variants are object descriptors sharing the union's path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Tuple

from connector_form.lib.paths import FieldPath, PathSegment

__all__ = ["UNSET", "FieldKind", "FieldDescriptor"]


class _Unset:
    """Marker for an absent ``const``/``default`` (``None`` is a valid constant)."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __deepcopy__(self, memo: dict) -> "_Unset":
        return self


UNSET: Any = _Unset()


class FieldKind(str, Enum):
    """Node kind of a field descriptor."""

    PRIMITIVE = "primitive"
    OBJECT = "object"
    ARRAY = "array"
    UNION = "union"


@dataclass(frozen=True)
class FieldDescriptor:
    """One node of the form's field tree.

    Attributes:
        path: Location of the field in the value tree
        kind: Node kind tag
        type: JSON type for primitives, arrays and objects
        required: Whether the parent lists this key as required
        children: Object properties in declared order
        items: Item template of an array node
        variants: Object subtrees of a union node in declared order
        discriminator: Property key whose constant tells union variants apart
    """

    path: FieldPath
    kind: FieldKind
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    required: bool = False
    nullable: bool = False
    const: Any = UNSET
    default: Any = UNSET
    enum: Optional[Tuple[Any, ...]] = None
    format: Optional[str] = None
    pattern: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    examples: Tuple[Any, ...] = ()
    secret: bool = False
    children: Tuple["FieldDescriptor", ...] = ()
    items: Optional["FieldDescriptor"] = None
    variants: Tuple["FieldDescriptor", ...] = ()
    discriminator: Optional[str] = None
    schema: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def key(self) -> Optional[PathSegment]:
        """Last path segment, or None for the root."""
        return self.path[-1] if self.path else None

    @property
    def label(self) -> str:
        """Human-readable name used in validation messages."""
        return self.title or (str(self.key) if self.key is not None else "value")

    @property
    def has_const(self) -> bool:
        return self.const is not UNSET

    @property
    def has_default(self) -> bool:
        return self.default is not UNSET

    @property
    def variant_consts(self) -> Tuple[Any, ...]:
        """Discriminator constant of every union variant, in variant order."""
        if self.kind is not FieldKind.UNION:
            return ()
        return tuple(v.child(self.discriminator).const for v in self.variants)

    def child(self, key: Any) -> "FieldDescriptor":
        """Return the object property named ``key``."""
        for child in self.children:
            if child.key == key:
                return child
        raise KeyError(key)

    def walk(self) -> Iterator["FieldDescriptor"]:
        """Yield every node depth-first, inactive variants included."""
        yield self
        for child in self.children:
            yield from child.walk()
        if self.items is not None:
            yield from self.items.walk()
        for variant in self.variants:
            yield from variant.walk()

    def paths(self) -> frozenset:
        """All paths declared anywhere in the tree."""
        return frozenset(node.path for node in self.walk())
