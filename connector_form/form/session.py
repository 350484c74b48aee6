"""Service form session: runs the form pipeline in its fixed order.

A schema change (connector selected, loading finished, oneOf branch switched)
runs one update cycle:

    schema rebuild -> field tree rebuild -> widget reset
        -> validation schema rebuild -> value patch -> revalidation

Every cycle is stamped with a generation number. A cycle that observes a
newer generation discards what it staged instead of committing it, so a later
schema change always supersedes an earlier one.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from connector_form.form.patcher import patch_values
from connector_form.form.rendering import build_render_table
from connector_form.form.revalidation import RevalidationTrigger
from connector_form.form.widget_store import OverrideLike, PathLike, WidgetMetadataStore
from connector_form.lib.errors import SubmissionError
from connector_form.lib.loader import parse_specification
from connector_form.lib.paths import FieldPath, as_path, path_key, set_in
from connector_form.lib.settings import FormSettings, get_settings
from connector_form.models.connector import ConnectorSpecification
from connector_form.models.field_descriptor import FieldDescriptor
from connector_form.models.widget_info import RenderCapability, WidgetInfo
from connector_form.schema.field_tree import build_form
from connector_form.schema.normalizer import build_canonical_schema
from connector_form.schema.validation import (
    ValidationIssue,
    ValidationSchema,
    build_validation_schema,
)

logger = logging.getLogger(__name__)

__all__ = ["ServiceFormSession"]

SpecificationLike = Union[ConnectorSpecification, Mapping[str, Any]]
Listener = Callable[["ServiceFormSession"], None]


class ServiceFormSession:
    """State of one connector configuration form.

    Attributes:
        form_type: "source" or "destination"
        edit_mode: Whether an existing configuration is being edited
        settings: Runtime settings

    Example:
        >>> session = ServiceFormSession("source", specification=postgres_spec)
        >>> session.set_value("connectionConfiguration.host", "db.internal")
        >>> session.select_variant("connectionConfiguration.ssl_mode", 1)
        >>> session.submit(save_source)
    """

    def __init__(
        self,
        form_type: Literal["source", "destination"] = "source",
        *,
        specification: Optional[SpecificationLike] = None,
        form_values: Optional[Mapping[str, Any]] = None,
        edit_mode: bool = False,
        is_loading: bool = False,
        overrides: Optional[Mapping[PathLike, OverrideLike]] = None,
        settings: Optional[FormSettings] = None,
    ) -> None:
        self.form_type = form_type
        self.edit_mode = edit_mode
        self.settings = settings or get_settings()

        self._specification = parse_specification(specification) if specification is not None else None
        self._is_loading = is_loading
        self._form_values: Dict[str, Any] = copy.deepcopy(dict(form_values or {}))
        self._overrides: Dict[PathLike, OverrideLike] = dict(overrides or {})
        self._listeners: List[Listener] = []

        self._generation = 0
        self._schema: Dict[str, Any] = {}
        self._tree: Optional[FieldDescriptor] = None
        self._store: Optional[WidgetMetadataStore] = None
        self._validation_schema: Optional[ValidationSchema] = None
        self._values: Dict[str, Any] = {}
        self._errors: List[ValidationIssue] = []
        self._revalidation = RevalidationTrigger(self.validate)

        self._reinitialize("mount")

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        """Number of update cycles started so far."""
        return self._generation

    @property
    def specification(self) -> Optional[ConnectorSpecification]:
        return self._specification

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def schema(self) -> Dict[str, Any]:
        """Canonical schema of the current view."""
        return self._schema

    @property
    def field_tree(self) -> FieldDescriptor:
        return self._tree

    @property
    def widgets(self) -> Mapping[FieldPath, WidgetInfo]:
        return self._store.snapshot

    @property
    def validation_schema(self) -> ValidationSchema:
        return self._validation_schema

    @property
    def values(self) -> Dict[str, Any]:
        """Copy of the live form values."""
        return copy.deepcopy(self._values)

    @property
    def errors(self) -> List[ValidationIssue]:
        """Issues found by the last validation pass."""
        return list(self._errors)

    def render_table(self) -> Dict[FieldPath, RenderCapability]:
        return build_render_table(self._tree, self._store.snapshot)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every committed change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Schema changes
    # ------------------------------------------------------------------

    def select_connector(self, specification: Optional[SpecificationLike]) -> None:
        """Switch the form to another connector; its values start over."""
        self._specification = parse_specification(specification) if specification is not None else None
        logger.info(
            "Selected %s connector %s",
            self.form_type,
            self._specification.definition_id if self._specification else None,
        )
        self._reinitialize("connector selected")

    def set_loading(self, is_loading: bool) -> None:
        """Mark the connector specification as loading or loaded."""
        if is_loading == self._is_loading:
            return
        self._is_loading = is_loading
        self._reinitialize("loading finished" if not is_loading else "loading started")

    def select_variant(self, path: PathLike, index: int) -> None:
        """Switch the active oneOf variant at ``path``.

        Raises:
            ValueError: If ``path`` is not a oneOf field or ``index`` is out of range
        """
        key = as_path(path)
        self._store.select_variant(key, index)
        generation = self._begin_cycle(f"variant {index} selected at {path_key(key)}")

        # Nested selections belong to the branch being left
        selections = {
            p: i for p, i in self._store.selections().items()
            if p == key or p[: len(key)] != key
        }
        self._store.reset(self._tree, self._values, self._overrides, selections)
        self._finish_cycle(generation, self._schema, self._tree, self._values)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def set_value(self, path: PathLike, value: Any) -> None:
        """Edit the value at ``path``.

        Raises:
            ValueError: If a parent of ``path`` holds a non-object value
        """
        key = as_path(path)
        values = copy.deepcopy(self._values)
        if not set_in(values, key, value):
            raise ValueError(f"Cannot set {path_key(key)}: parent is not an object")
        self._values = values
        if self.settings.validate_on_change:
            self.validate()
        self._notify()

    def validate(self) -> List[ValidationIssue]:
        """Run a full validation pass over the live values."""
        self._errors = self._validation_schema.validate(self._values)
        if self._errors:
            logger.debug("Validation found %d issue(s)", len(self._errors))
        return list(self._errors)

    def get_values(self) -> Dict[str, Any]:
        """Values to send, cast by the compiled rules."""
        return self._validation_schema.cast(
            self._values,
            strip_unknown=self.settings.strip_unknown_on_submit,
        )

    def submit(self, handler: Callable[[Dict[str, Any]], Any]) -> Any:
        """Validate, cast and hand the values to ``handler``.

        Raises:
            SubmissionError: If the validation pass fails; values are unchanged
        """
        issues = self.validate()
        if issues:
            raise SubmissionError(
                "Form has validation errors",
                issues=issues,
                connector=self._specification.definition_id if self._specification else None,
            )
        payload = self.get_values()
        logger.info("Submitting %s configuration", self.form_type)
        return handler(payload)

    # ------------------------------------------------------------------
    # Update cycle
    # ------------------------------------------------------------------

    def _base_values(self) -> Dict[str, Any]:
        values = copy.deepcopy(self._form_values)
        if self._specification is not None:
            values["serviceType"] = self._specification.definition_id
            if not self.edit_mode:
                values["name"] = self._specification.name
        return values

    def _begin_cycle(self, reason: str) -> int:
        self._generation += 1
        logger.debug("Update cycle %d: %s", self._generation, reason)
        return self._generation

    def _superseded(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Discarding superseded update cycle %d", generation)
            return True
        return False

    def _reinitialize(self, reason: str) -> None:
        generation = self._begin_cycle(reason)

        schema = build_canonical_schema(self._specification, is_loading=self._is_loading)
        build = build_form(schema, self._base_values(), edit_mode=self.edit_mode)
        if self._superseded(generation):
            return

        if self._store is None:
            self._store = WidgetMetadataStore(
                build.tree,
                build.initial_values,
                self._overrides,
                edit_mode=self.edit_mode,
            )
        else:
            self._store.reset(build.tree, build.initial_values, self._overrides)
        self._finish_cycle(generation, schema, build.tree, build.initial_values)

    def _finish_cycle(
        self,
        generation: int,
        schema: Dict[str, Any],
        tree: FieldDescriptor,
        values: Mapping[str, Any],
    ) -> None:
        snapshot = self._store.snapshot
        validation_schema = build_validation_schema(tree, snapshot, previous=self._validation_schema)
        patched = patch_values(values, snapshot, tree)
        if self._superseded(generation):
            return

        previous_values = self._values
        self._schema = schema
        self._tree = tree
        self._validation_schema = validation_schema
        self._values = patched

        # Unchanged rules skip revalidation; patched values still need a pass
        if not self._revalidation.observe(validation_schema) and patched != previous_values:
            self.validate()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
