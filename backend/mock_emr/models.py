import datetime as dt
from typing import Annotated, Any, ClassVar, Dict, List, Optional, Union

from pydantic import (
    BaseModel, Discriminator, Field, StrictStr, Tag, TypeAdapter, ValidationError, field_validator,
)

from .errors import InvalidInput


class Patient(BaseModel):
    id: str = Field(pattern=r"^[A-Za-z0-9_-]{1,32}$")
    display_name: str
    display_id: Optional[str] = None
    display_gender: Optional[str] = None
    display_birthdate: Optional[dt.date] = None


class SummaryEndpoints(BaseModel):
    get_endpoint: str
    set_endpoint: str


class PatientDetails(Patient):
    patient_summary: Optional[SummaryEndpoints] = None
    encounters_endpoint: str


class Encounter(BaseModel):
    id: str
    display_name: str
    date: dt.date


class PatientListResponse(BaseModel):
    patients: List[PatientDetails]


class EncounterListResponse(BaseModel):
    encounters: List[Encounter]


class SummaryResponse(BaseModel):
    summary_notes: str


class EncounterNoteResponse(BaseModel):
    note: str


class MessageResponse(BaseModel):
    message: str


class NoteAccepted(MessageResponse):
    encounter_id: str


class ErrorResponse(BaseModel):
    error: str
    message: str


# --- note submissions: one model per note format, picked by key presence ---

class _NoteSubmission(BaseModel):
    patient_id: StrictStr = Field(min_length=1)
    note_title: StrictStr
    transcript: Optional[StrictStr] = None
    audio_base64: List[StrictStr] = Field(default_factory=list)
    encounter_id: Optional[StrictStr] = Field(default=None, min_length=1)

    @field_validator("audio_base64", mode="before")
    @classmethod
    def null_audio_is_empty(cls, value):
        return [] if value is None else value


class PlainNoteSubmission(_NoteSubmission):
    kind: ClassVar[str] = "plain"
    notes: StrictStr


class StructuredNoteSubmission(_NoteSubmission):
    kind: ClassVar[str] = "structured"
    notes_json: Dict[str, Any]
    notes_template: StrictStr


def _submission_kind(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        has_notes, has_json = "notes" in value, "notes_json" in value
    else:
        has_notes, has_json = hasattr(value, "notes"), hasattr(value, "notes_json")
    if has_notes == has_json:
        return None  # neither or both: no variant matches
    return "plain" if has_notes else "structured"


NoteSubmission = Annotated[
    Union[
        Annotated[PlainNoteSubmission, Tag("plain")],
        Annotated[StructuredNoteSubmission, Tag("structured")],
    ],
    Discriminator(
        _submission_kind,
        custom_error_type="note_format",
        custom_error_message="Exactly one of 'notes' or 'notes_json' must be provided.",
    ),
]

_submission_adapter = TypeAdapter(NoteSubmission)


def describe_validation_error(errors) -> str:
    """Short human message for the first pydantic/FastAPI validation error."""
    if not errors:
        return "Invalid request."
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "plain", "structured"))
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def parse_submission(payload: Any) -> Union[PlainNoteSubmission, StructuredNoteSubmission]:
    try:
        return _submission_adapter.validate_python(payload)
    except ValidationError as ve:
        raise InvalidInput(describe_validation_error(ve.errors())) from ve
