import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from ats_forms.config import settings
from ats_forms.database import get_db
from ats_forms.services.classifier import GeoMetadata, classify
from ats_forms.services.errors import ApplicationNotFoundError, FormNotFoundError
from ats_forms.services.file_storage import FileStorage, UploadedFile, get_file_storage
from ats_forms.services.form_store import FormStore
from ats_forms.services.submission_encoder import encode
from ats_forms.services.validation import validate

router = APIRouter()
logger = logging.getLogger("ats_forms.applications")


def get_storage() -> FileStorage:
    return get_file_storage()


def _geo_from(request: Request, payload: Any) -> GeoMetadata:
    if isinstance(payload, str):
        try:
            payload = json.loads(payload) if payload.strip() else {}
        except ValueError:
            logger.warning("Ignoring malformed geo payload")
            payload = {}
    payload = payload if isinstance(payload, dict) else {}

    def text(key):
        value = payload.get(key)
        return str(value) if value not in (None, "") else None

    return GeoMetadata(
        city=text("city"),
        state=text("state"),
        country=text("country"),
        ip=text("ip") or (request.client.host if request.client else None),
        latitude=text("latitude"),
        longitude=text("longitude"),
    )


async def _read_multipart(request: Request) -> tuple[dict[str, Any], Any, Optional[str]]:
    form = await request.form()
    values: dict[str, Any] = {}
    geo, job_id = None, None

    for key, item in form.multi_items():
        if key == "geo":
            geo = item
            continue
        if key == "jobId":
            job_id = item or None
            continue

        if isinstance(item, UploadFile):
            item = UploadedFile(data=await item.read(), filename=item.filename or "upload",
                                content_type=item.content_type)

        # Repeated keys carry CHECKBOX and TAGS selections
        if key in values:
            existing = values[key]
            values[key] = (existing if isinstance(existing, list) else [existing]) + [item]
        else:
            values[key] = item

    return values, geo, job_id


async def _read_submission(request: Request) -> tuple[dict[str, Any], GeoMetadata, Optional[str]]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/") or content_type.startswith("application/x-www-form-urlencoded"):
        values, geo, job_id = await _read_multipart(request)
    else:
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Request body must be JSON or multipart form data")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Request body must be a JSON object")
        values = body.get("values") or {}
        if not isinstance(values, dict):
            raise HTTPException(status_code=400, detail="values must be a JSON object")
        geo, job_id = body.get("geo"), body.get("jobId")
    return values, _geo_from(request, geo), job_id


@router.post("/forms/{form_id}/applications", status_code=201)
async def submit_application(form_id: str, request: Request, db: Session = Depends(get_db),
                             storage: FileStorage = Depends(get_storage)):
    """Validate, encode and store one candidate's answers to a form."""
    store = FormStore(db)
    try:
        form = store.load_form(form_id)
    except FormNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    values, geo, job_id = await _read_submission(request)

    errors = validate(form, values)
    if errors:
        logger.info(f"Rejected application for form {form_id}: {len(errors)} validation errors")
        return JSONResponse(status_code=422, content={"errors": errors})

    result = await encode(form, values, storage=storage)
    if not result.ok:
        # Nothing is stored; the client resends the uploaded descriptors as values
        logger.warning(f"Application for form {form_id} has {len(result.errors)} failed uploads")
        return JSONResponse(status_code=422, content={
            "errors": result.errors,
            "uploaded": {k: d.to_dict() for k, d in result.uploaded.items()},
        })

    application_id = store.save_application(form.id, result.fields, geo=geo, job_id=job_id)
    return {
        "id": application_id,
        "formId": form.id,
        "status": "PENDING",
        "formData": [f.to_dict() for f in result.fields],
    }


def _load_application(store: FormStore, application_id: str):
    try:
        return store.load_application(application_id)
    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/applications/{application_id}")
async def get_application(application_id: str, db: Session = Depends(get_db)):
    return _load_application(FormStore(db), application_id).to_dict()


@router.get("/applications/{application_id}/profile")
async def get_profile(application_id: str, db: Session = Depends(get_db)):
    application = _load_application(FormStore(db), application_id)
    profile = classify(application.fields, geo=application.geo)
    return {
        "id": application.id,
        "candidateName": application.candidate_name,
        "candidateEmail": application.candidate_email,
        "candidatePhone": application.candidate_phone,
        **profile.to_dict(settings.public_base_url),
    }
