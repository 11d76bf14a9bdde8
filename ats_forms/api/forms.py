"""Form builder API: CRUD on forms plus the builder's field operations."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ats_forms.database import get_db
from ats_forms.services.errors import FieldNotFoundError, FormNotFoundError, InvalidFormError
from ats_forms.services.form_builder import (
    InsertNew,
    MoveExisting,
    reorder,
    set_options_from_text,
)
from ats_forms.services.form_schema import Form, new_form, remove_field, update_field
from ats_forms.services.form_store import FormStore
from ats_forms.services.widget_dispatcher import describe_form

router = APIRouter(prefix="/forms")
logger = logging.getLogger("ats_forms.forms")


class FormPayload(BaseModel):
    name: str
    description: Optional[str] = ""
    isDefault: bool = False
    fields: Optional[list[dict]] = None
    seed: Optional[list[str]] = None


class InsertFieldRequest(BaseModel):
    fieldType: str
    index: int
    label: Optional[str] = None


class MoveFieldRequest(BaseModel):
    index: int


class OptionsRequest(BaseModel):
    text: str


def get_store(db: Session = Depends(get_db)) -> FormStore:
    return FormStore(db)


def _load(store: FormStore, form_id: str) -> Form:
    try:
        return store.load_form(form_id)
    except FormNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _save(store: FormStore, form: Form) -> dict:
    try:
        return store.save_form(form).to_dict()
    except InvalidFormError as e:
        logger.warning(f"Rejected form {form.id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.get("")
async def list_forms(store: FormStore = Depends(get_store)):
    return [f.to_dict() for f in store.list_forms()]


@router.post("", status_code=201)
async def create_form(payload: FormPayload, store: FormStore = Depends(get_store)):
    if payload.fields is not None:
        form = Form.from_dict({
            "name": payload.name,
            "description": payload.description,
            "isDefault": payload.isDefault,
            "fields": [{**f, "order": index} for index, f in enumerate(payload.fields)],
        })
    else:
        try:
            form = new_form(payload.name, seed=payload.seed, description=payload.description or "",
                            is_default=payload.isDefault)
        except InvalidFormError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return _save(store, form)


@router.get("/{form_id}")
async def get_form(form_id: str, store: FormStore = Depends(get_store)):
    return _load(store, form_id).to_dict()


@router.put("/{form_id}")
async def replace_form(form_id: str, payload: FormPayload, store: FormStore = Depends(get_store)):
    _load(store, form_id)
    form = Form.from_dict({
        "id": form_id,
        "name": payload.name,
        "description": payload.description,
        "isDefault": payload.isDefault,
        "fields": [{**f, "order": index} for index, f in enumerate(payload.fields or [])],
    })
    return _save(store, form)


@router.delete("/{form_id}")
async def delete_form(form_id: str, store: FormStore = Depends(get_store)):
    try:
        store.delete_form(form_id)
    except FormNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "deleted", "id": form_id}


@router.post("/{form_id}/fields")
async def insert_field(form_id: str, request: InsertFieldRequest, store: FormStore = Depends(get_store)):
    """Drop a new field from the type palette at ``index``."""
    form = _load(store, form_id)
    try:
        form = reorder(form, InsertNew(request.fieldType, request.index, label=request.label))
    except InvalidFormError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _save(store, form)


@router.post("/{form_id}/fields/{field_id}/move")
async def move_field(form_id: str, field_id: str, request: MoveFieldRequest,
                     store: FormStore = Depends(get_store)):
    form = _load(store, form_id)
    try:
        form = reorder(form, MoveExisting(field_id, request.index))
    except FieldNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _save(store, form)


@router.patch("/{form_id}/fields/{field_id}")
async def patch_field(form_id: str, field_id: str, patch: dict, store: FormStore = Depends(get_store)):
    form = _load(store, form_id)
    try:
        form = update_field(form, field_id, patch)
    except FieldNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidFormError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _save(store, form)


@router.delete("/{form_id}/fields/{field_id}")
async def delete_field(form_id: str, field_id: str, store: FormStore = Depends(get_store)):
    form = _load(store, form_id)
    try:
        form = remove_field(form, field_id)
    except FieldNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _save(store, form)


@router.put("/{form_id}/fields/{field_id}/options")
async def set_options(form_id: str, field_id: str, request: OptionsRequest,
                      store: FormStore = Depends(get_store)):
    """Replace a field's options from the builder's one-per-line text box."""
    form = _load(store, form_id)
    try:
        form = set_options_from_text(form, field_id, request.text)
    except FieldNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidFormError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _save(store, form)


@router.get("/{form_id}/widgets")
async def form_widgets(form_id: str, store: FormStore = Depends(get_store)):
    form = _load(store, form_id)
    return {"formId": form.id, "widgets": [w.to_dict() for w in describe_form(form)]}
