"""Builder reordering engine.

Two drop operations come from the builder canvas: a new field dragged in from
the type palette, and an existing field dragged to another slot. Both leave the
form with a dense 0-based order. Operations are applied in the order they are
issued, so when two target the same slot the later one wins.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Union

from ats_forms.services.errors import InvalidFormError
from ats_forms.services.field_types import has_options
from ats_forms.services.form_schema import Form, create_field, renumber, update_field


@dataclass(frozen=True)
class InsertNew:
    field_type: str
    index: int
    label: Optional[str] = None


@dataclass(frozen=True)
class MoveExisting:
    field_id: str
    index: int


ReorderOp = Union[InsertNew, MoveExisting]


def _clamp(index: int, size: int) -> int:
    return max(0, min(index, size))


def move_index(source: int, target: int) -> int:
    """Slot a field lands in once it has been lifted out of ``source``.

    ``target`` is the drop slot in the list *before* removal. Removing the
    dragged field shifts every later slot left by one, so a drop past the
    source lands one slot earlier.
    """
    return target - 1 if target > source else target


def insert_new(form: Form, field_type: str, index: int, label: Optional[str] = None) -> Form:
    index = _clamp(index, len(form.fields))
    new_field = create_field(field_type, label=label, order=index)
    fields = list(form.fields)
    fields.insert(index, new_field)
    return replace(form, fields=renumber(fields))


def move_existing(form: Form, field_id: str, index: int) -> Form:
    source = form.index_of(field_id)
    fields = list(form.fields)
    moved = fields.pop(source)
    target = move_index(source, _clamp(index, len(form.fields)))
    fields.insert(target, moved)
    return replace(form, fields=renumber(fields))


def reorder(form: Form, op: ReorderOp) -> Form:
    if isinstance(op, InsertNew):
        return insert_new(form, op.field_type, op.index, label=op.label)
    if isinstance(op, MoveExisting):
        return move_existing(form, op.field_id, op.index)
    raise InvalidFormError(f"Unsupported reorder operation: {op!r}")


def apply_ops(form: Form, ops: Iterable[ReorderOp]) -> Form:
    for op in ops:
        form = reorder(form, op)
    return form


def parse_options_text(text: str) -> list[str]:
    """One option per line; blank lines are dropped, order is kept."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def set_options_from_text(form: Form, field_id: str, text: str) -> Form:
    target = form.get_field(field_id)
    if not has_options(target.field_type):
        raise InvalidFormError(f"Field {field_id} ({target.field_type}) does not take options")
    return update_field(form, field_id, {"options": parse_options_text(text)})
