import time, uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from structlog.contextvars import bind_contextvars, unbind_contextvars

from .auth import require_api_key
from .browser import open_in_browser
from .config import Settings, get_settings
from .db import ClinicalStore, seed_store
from .errors import EMRError, InternalError, InvalidInput
from .logging_config import configure_logging
from .models import (
    EncounterListResponse, EncounterNoteResponse, ErrorResponse, MessageResponse, NoteAccepted,
    PatientDetails, PatientListResponse, SummaryEndpoints, SummaryResponse,
    describe_validation_error, parse_submission,
)
from .notes import LatestNoteSlot, ingest_note
from .viewer import render_note_page

logger = structlog.get_logger(__name__)

ENDPOINT_PATHS = {
    "patients": "/patients",
    "notes": "/notes",
    "patient_summary": "/patient-summary/{patientId}",
    "patient_encounters": "/patients/{patientId}/encounters",
    "encounter_note": "/encounters/{encounterId}",
    "view_note": "/view-note",
}


def get_store(request: Request) -> ClinicalStore:
    return request.app.state.store


def get_latest_note(request: Request) -> LatestNoteSlot:
    return request.app.state.latest_note


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


NOT_FOUND = {404: {"model": ErrorResponse}}

router = APIRouter(responses={401: {"model": ErrorResponse}})


@router.get("/endpoints")
async def endpoints(settings: Settings = Depends(get_app_settings)) -> Dict[str, str]:
    return {name: settings.url_for(path) for name, path in ENDPOINT_PATHS.items()}


@router.get("/patients", response_model=PatientListResponse)
async def list_patients(store: ClinicalStore = Depends(get_store),
                        settings: Settings = Depends(get_app_settings)):
    patients = []
    for p in store.get_patients():
        summary_url = settings.url_for(f"/patient-summary/{p.id}")
        patients.append(PatientDetails(
            **p.model_dump(),
            patient_summary=SummaryEndpoints(get_endpoint=summary_url, set_endpoint=summary_url),
            encounters_endpoint=settings.url_for(f"/patients/{p.id}/encounters"),
        ))
    return PatientListResponse(patients=patients)


@router.post("/notes", response_model=NoteAccepted,
             responses={**NOT_FOUND, 400: {"model": ErrorResponse}})
async def post_note(payload: Dict[str, Any] = Body(...),
                    store: ClinicalStore = Depends(get_store),
                    slot: LatestNoteSlot = Depends(get_latest_note),
                    settings: Settings = Depends(get_app_settings)):
    submission = parse_submission(payload)
    encounter_id = ingest_note(store, slot, submission)
    if settings.open_browser:
        open_in_browser(settings.url_for("/view-note?" + urlencode({"apiKey": settings.api_key})))
    return NoteAccepted(message="Note received and view opened in browser!", encounter_id=encounter_id)


@router.get("/patient-summary/{patient_id}", response_model=SummaryResponse, responses=NOT_FOUND)
async def get_summary(patient_id: str, store: ClinicalStore = Depends(get_store)):
    return SummaryResponse(summary_notes=store.get_summary(patient_id))


@router.post("/patient-summary/{patient_id}", response_model=MessageResponse,
             responses={**NOT_FOUND, 400: {"model": ErrorResponse}})
async def set_summary(patient_id: str, payload: Optional[Dict[str, Any]] = Body(None),
                      store: ClinicalStore = Depends(get_store)):
    store.set_summary(patient_id, (payload or {}).get("summary_notes"))
    logger.info("summary_updated", patient_id=patient_id)
    return MessageResponse(message="Summary updated successfully.")


@router.get("/patients/{patient_id}/encounters", response_model=EncounterListResponse, responses=NOT_FOUND)
async def list_encounters(patient_id: str, store: ClinicalStore = Depends(get_store)):
    return EncounterListResponse(encounters=store.get_encounters(patient_id))


@router.get("/encounters/{encounter_id}", response_model=EncounterNoteResponse, responses=NOT_FOUND)
async def get_encounter_note(encounter_id: str, store: ClinicalStore = Depends(get_store)):
    return EncounterNoteResponse(note=store.get_encounter_note(encounter_id))


@router.get("/view-note", response_class=HTMLResponse, responses={404: {"content": {"text/html": {}}}})
async def view_note(slot: LatestNoteSlot = Depends(get_latest_note)):
    status_code, page = render_note_page(slot.submission)
    return HTMLResponse(page, status_code=status_code)


async def emr_error_handler(request: Request, exc: EMRError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await emr_error_handler(request, InvalidInput(describe_validation_error(exc.errors())))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return await emr_error_handler(request, InternalError("An unexpected error occurred."))


def create_app(settings: Optional[Settings] = None, store: Optional[ClinicalStore] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "server_starting",
            url=settings.public_url,
            api_key=settings.masked_api_key,
            endpoints={name: settings.url_for(path) for name, path in ENDPOINT_PATHS.items()},
        )
        yield

    app = FastAPI(title="Mock EMR", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else seed_store()
    app.state.latest_note = LatestNoteSlot()

    # innermost, so CORS preflights are answered before the key check
    app.middleware("http")(require_api_key)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        bind_contextvars(request_id=request_id, path=request.url.path, method=request.method)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers["X-Request-Id"] = request_id
            logger.info("request_completed", status=response.status_code,
                        duration_ms=round((time.perf_counter() - start) * 1000, 2))
            return response
        finally:
            unbind_contextvars("request_id", "path", "method")

    app.add_exception_handler(EMRError, emr_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
