import datetime as dt
from typing import Optional, Union

import structlog

from .db import ClinicalStore, render_note_content
from .models import PlainNoteSubmission, StructuredNoteSubmission

logger = structlog.get_logger(__name__)

Submission = Union[PlainNoteSubmission, StructuredNoteSubmission]


class LatestNoteSlot:
    """Holds the most recent submission for the viewer page; not keyed by encounter."""

    def __init__(self):
        self.submission: Optional[Submission] = None

    def put(self, submission: Submission) -> None:
        self.submission = submission


def ingest_note(store: ClinicalStore, slot: LatestNoteSlot, submission: Submission,
                today: Optional[dt.date] = None) -> str:
    """Record ``submission`` and return the encounter id its note was written to.

    A supplied ``encounter_id`` must name an existing encounter, whose note is
    overwritten; an unknown id raises ``NotFound`` before anything is recorded,
    so every stored note keeps an owning encounter. Without one a
    new encounter titled after the note is appended to the patient's list,
    whether or not the patient is known to the store.
    """
    encounter_id = submission.encounter_id
    if encounter_id is not None:
        store.get_encounter(encounter_id)
    slot.put(submission)

    created = encounter_id is None
    if created:
        encounter = store.add_encounter(submission.patient_id, submission.note_title,
                                        today or dt.date.today())
        encounter_id = encounter.id

    if isinstance(submission, StructuredNoteSubmission):
        content = render_note_content(submission.notes_json)
    else:
        content = render_note_content(submission.notes)
    store.put_note(encounter_id, content)

    logger.info("note_ingested", patient_id=submission.patient_id, encounter_id=encounter_id,
                kind=submission.kind, new_encounter=created,
                audio_clips=len(submission.audio_base64))
    return encounter_id
