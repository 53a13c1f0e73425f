"""
Reactive store: owner of one form document.

The store applies mutation-engine operations inside transactions, keeps
two derived views up to date (flattened fields, validation summary) and
notifies subscribers once per commit.

Transactions:
    Every operation runs inside batch(). Nested batches join the outermost
    one, so derived views and notifications happen once for the whole group.
    If anything raises, the document reverts to its value at the start of
    the failing batch and the error propagates.

There is no module-level instance. Whoever composes the application creates
a FormStore, hands it to the components that need it and disposes it.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from formtree import operations
from formtree.addressing import resolve_container
from formtree.analyzer import ValidationSummary, flatten_fields, summarize_validation
from formtree.config import BuilderConfig
from formtree.fields import BaseField
from formtree.model import Document, FlatList, MultiStepWizard, Step
from formtree.serialization import snapshot_from_dict, snapshot_to_dict
from formtree.templates import Template

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], None]


class FormStore:
    """
    Holds the current Document and applies mutations to it.

    Properties:
        document: Last committed Document (read-only snapshot)
        flattened_fields: Every field, regardless of shape
        validation: ValidationSummary over flattened_fields
        form_name / schema_name: Draft metadata carried into snapshots
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        *,
        config: Optional[BuilderConfig] = None,
        templates: Optional[Mapping[str, Template]] = None,
    ):
        self._config = config or BuilderConfig()
        self._templates = templates
        self.form_name = self._config.form_name
        self.schema_name = self._config.schema_name

        if document is None:
            document = FlatList()
            if self._config.initial_template:
                document = operations.set_template(
                    document, self._config.initial_template, templates
                )
        self._document: Document = self._normalize(document)

        self._batch_depth = 0
        self._batch_origin: Optional[Document] = None
        self._subscribers: List[Subscriber] = []
        self._validation_subscribers: List[Subscriber] = []
        self._disposed = False

        self._flattened: Tuple[BaseField, ...] = ()
        self._validation = ValidationSummary()
        self._recompute()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def document(self) -> Document:
        return self._document

    @property
    def is_multi_step(self) -> bool:
        return self._document.is_multi_step

    @property
    def flattened_fields(self) -> Tuple[BaseField, ...]:
        return self._flattened

    @property
    def validation(self) -> ValidationSummary:
        return self._validation

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _recompute(self) -> None:
        self._flattened = flatten_fields(self._document)
        self._validation = summarize_validation(self._flattened)

    @staticmethod
    def _normalize(document: Document) -> Document:
        # A wizard always has at least one step
        if isinstance(document, MultiStepWizard) and not document.steps:
            return MultiStepWizard(steps=(Step(),))
        return document

    def _ensure_active(self) -> None:
        if self._disposed:
            raise RuntimeError("FormStore has been disposed")

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    @contextmanager
    def batch(self):
        """
        Group operations into one atomic commit and one notification.

        Example:
            with store.batch():
                store.append_field("Input")
                store.append_field("Checkbox")
        """
        self._ensure_active()
        origin = self._document
        if self._batch_depth == 0:
            self._batch_origin = origin
        self._batch_depth += 1
        try:
            yield self
        except BaseException:
            self._document = origin
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._batch_origin = None
            logger.debug("Batch rolled back at depth %d", self._batch_depth)
            raise
        self._batch_depth -= 1
        if self._batch_depth == 0:
            previous, self._batch_origin = self._batch_origin, None
            self._commit(previous)

    def _commit(self, previous: Document) -> None:
        if self._document is previous:
            return
        old_validation = self._validation
        self._recompute()
        logger.debug(
            "Committed %s with %d fields",
            type(self._document).__name__, self._validation.total_fields,
        )
        self._notify(self._subscribers, self._document)
        if self._validation != old_validation:
            self._notify(self._validation_subscribers, self._validation)

    def _notify(self, subscribers: Sequence[Subscriber], value: Any) -> None:
        for callback in list(subscribers):
            try:
                callback(value)
            except Exception as e:
                logger.warning("Store subscriber %r failed: %s", callback, e)

    def _apply(self, operation: Callable[..., Document], *args: Any, **kwargs: Any) -> Document:
        with self.batch():
            self._document = self._normalize(operation(self._document, *args, **kwargs))
        return self._document

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call callback(document) after every commit. Returns an unsubscriber."""
        return self._add_subscriber(self._subscribers, callback)

    def subscribe_validation(self, callback: Subscriber) -> Callable[[], None]:
        """Call callback(summary) whenever the validation summary changes."""
        return self._add_subscriber(self._validation_subscribers, callback)

    def _add_subscriber(self, subscribers: List[Subscriber], callback: Subscriber):
        self._ensure_active()
        subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in subscribers:
                subscribers.remove(callback)

        return unsubscribe

    def unsubscribe_all(self) -> None:
        self._subscribers.clear()
        self._validation_subscribers.clear()

    def dispose(self) -> None:
        """End the store's lifecycle; later operations raise RuntimeError."""
        self.unsubscribe_all()
        self._disposed = True

    # =========================================================================
    # PERSISTENCE INTERFACE
    # =========================================================================

    def snapshot(self) -> Dict[str, Any]:
        """Serializable copy of the current document and draft metadata."""
        return snapshot_to_dict(self._document, self.form_name, self.schema_name)

    def restore(self, data: Mapping[str, Any]) -> Document:
        """Replace the current document with a snapshot produced by snapshot()."""
        document, form_name, schema_name = snapshot_from_dict(data)
        names = self.form_name, self.schema_name
        try:
            with self.batch():
                self.form_name = form_name or self.form_name
                self.schema_name = schema_name or self.schema_name
                self._document = self._normalize(document)
        except Exception:
            self.form_name, self.schema_name = names
            raise
        return self._document

    def set_document(self, document: Document) -> Document:
        return self._apply(lambda _: document)

    # =========================================================================
    # FIELDS
    # =========================================================================

    def append_field(self, field_type, **options: Any) -> Document:
        return self._apply(operations.append_field, field_type, **options)

    def drop_field(self, field_index: int, **options: Any) -> Document:
        return self._apply(operations.drop_field, field_index, **options)

    def edit_field(self, field_index: int, patch: Mapping[str, Any], **options: Any) -> Document:
        return self._apply(operations.edit_field, field_index, patch, **options)

    def reorder_fields(self, new_order: Sequence, **options: Any) -> Document:
        return self._apply(operations.reorder_fields, new_order, **options)

    def reset_fields(self) -> Document:
        return self._apply(operations.reset_fields)

    # =========================================================================
    # DOCUMENT SHAPE
    # =========================================================================

    def set_template(self, name: str) -> Document:
        return self._apply(operations.set_template, name, self._templates)

    def set_multi_step(self, enabled: bool) -> Document:
        return self._apply(operations.set_multi_step, enabled)

    def add_step(self, position: Optional[int] = None) -> Document:
        return self._apply(operations.add_step, position)

    def remove_step(self, step_index: int) -> Document:
        return self._apply(operations.remove_step, step_index)

    def reorder_steps(self, new_order: Sequence[Step]) -> Document:
        return self._apply(operations.reorder_steps, new_order)

    # =========================================================================
    # REPEATING GROUPS
    # =========================================================================

    def add_repeating_group(self, template: Sequence, step_index: Optional[int] = None, **options: Any) -> Document:
        return self._apply(operations.add_repeating_group, template, step_index, **options)

    def add_element(self, element, step_index: Optional[int] = None) -> Document:
        """Append an already-built field, row or repeating group."""
        return self._apply(operations.add_slot_to_document, element, step_index)

    def remove_repeating_group(self, group_id: str) -> Document:
        return self._apply(operations.remove_repeating_group, group_id)

    def update_repeating_group_template(self, group_id: str, template: Sequence) -> Document:
        return self._apply(operations.update_repeating_group_template, group_id, template)

    def update_repeating_group_properties(self, group_id: str, **props: Any) -> Document:
        return self._apply(operations.update_repeating_group_properties, group_id, **props)

    def reorder_repeating_group_template(self, group_id: str, new_order: Sequence) -> Document:
        return self._apply(operations.reorder_repeating_group_template, group_id, new_order)

    def sync_group_entries(self, group_id: str) -> Document:
        return self._apply(operations.sync_group_entries, group_id)

    def add_entry(self, group_id: str) -> Document:
        return self._apply(operations.add_entry, group_id)

    def remove_entry(self, group_id: str, entry_id: str) -> Document:
        return self._apply(operations.remove_entry, group_id, entry_id)

    def update_entry_fields(self, group_id: str, entry_id: str, fields: Sequence) -> Document:
        return self._apply(operations.update_entry_fields, group_id, entry_id, fields)

    def update_group_template_field(
        self,
        group_id: str,
        field_index: int,
        patch: Mapping[str, Any],
        nested_index: Optional[int] = None,
        also_update_entries: bool = True,
    ) -> Document:
        return self._apply(
            operations.update_group_template_field,
            group_id, field_index, patch, nested_index, also_update_entries,
        )

    def add_group_field(self, group_id: str, field_type, **overrides: Any) -> Document:
        return self._apply(operations.add_group_field, group_id, field_type, **overrides)

    def remove_group_field(self, group_id: str, field_index: int) -> Document:
        return self._apply(operations.remove_group_field, group_id, field_index)

    def reorder_group_fields(self, group_id: str, new_order: Sequence) -> Document:
        return self._apply(operations.reorder_group_fields, group_id, new_order)

    # =========================================================================
    # BATCHES
    # =========================================================================

    def batch_append(self, elements: Iterable) -> Document:
        """
        Append many fields as one commit.

        Each element is an options mapping (with "field_type"), or a list of
        them which is appended as one row.
        """
        with self.batch():
            for element in elements:
                if isinstance(element, Mapping):
                    self.append_field(**element)
                    continue
                first, *rest = element
                self.append_field(**first)
                step_index = first.get("step_index")
                index = len(resolve_container(self._document, step_index)) - 1
                for options in rest:
                    options = dict(options)
                    options.setdefault("step_index", step_index)
                    self.append_field(field_index=index, **options)
        return self._document

    def batch_edit(self, edits: Iterable[Mapping[str, Any]]) -> Document:
        """
        Apply many edits as one commit.

        Each edit maps "field_index", "patch" and optionally "j"/"step_index".
        """
        with self.batch():
            for edit in edits:
                edit = dict(edit)
                field_index = edit.pop("field_index")
                patch = edit.pop("patch")
                self.edit_field(field_index, patch, **edit)
        return self._document

    def bulk_operations(self, ops: Iterable[Tuple[str, Mapping[str, Any]]]) -> Document:
        """Run ("append" | "edit" | "drop", options) pairs as one commit."""
        handlers = {
            "append": lambda o: self.append_field(**o),
            "edit": lambda o: self.batch_edit([o]),
            "drop": lambda o: self.drop_field(**o),
        }
        with self.batch():
            for kind, options in ops:
                if kind not in handlers:
                    raise ValueError(f"Unknown bulk operation: {kind}")
                handlers[kind](options)
        return self._document

    def set_template_and_append(self, name: str, elements: Iterable) -> Document:
        with self.batch():
            self.set_template(name)
            self.batch_append(elements)
        return self._document

    def convert_to_multi_step(self, step_count: int) -> Document:
        """Switch to a wizard and pad it to step_count steps."""
        with self.batch():
            self.set_multi_step(True)
            while len(self._document.steps) < step_count:
                self.add_step()
        return self._document


__all__ = ["FormStore"]
