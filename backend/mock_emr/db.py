import datetime as dt
import json
import uuid
from typing import Dict, List

from .errors import InvalidInput, NotFound
from .models import Encounter, Patient


class ClinicalStore:
    """In-memory EMR data: patients, summaries, encounters and encounter notes.

    The summaries mapping doubles as the patient-existence check for summary
    and encounter lookups, so a patient seeded without a summary reads as
    unknown there.
    """

    def __init__(self):
        self.patients: Dict[str, Patient] = {}
        self.summaries: Dict[str, str] = {}
        self.encounters: Dict[str, List[Encounter]] = {}
        self.notes: Dict[str, str] = {}

    def get_patients(self) -> List[Patient]:
        return list(self.patients.values())

    def get_encounter(self, encounter_id: str) -> Encounter:
        for group in self.encounters.values():
            for encounter in group:
                if encounter.id == encounter_id:
                    return encounter
        raise NotFound("Encounter not found.")

    def get_summary(self, patient_id: str) -> str:
        if patient_id not in self.summaries:
            raise NotFound("No summary found for this patient.")
        return self.summaries[patient_id]

    def set_summary(self, patient_id: str, text) -> None:
        if patient_id not in self.summaries:
            raise NotFound("Patient not found.")
        if not isinstance(text, str):
            raise InvalidInput('Request body must contain a "summary_notes" string.')
        self.summaries[patient_id] = text

    def get_encounters(self, patient_id: str) -> List[Encounter]:
        if patient_id not in self.summaries:
            raise NotFound("Patient not found.")
        return list(self.encounters.get(patient_id, []))

    def get_encounter_note(self, encounter_id: str) -> str:
        if encounter_id not in self.notes:
            raise NotFound("No note found for this encounter.")
        return self.notes[encounter_id]

    def _new_encounter_id(self) -> str:
        taken = self.notes.keys() | {e.id for group in self.encounters.values() for e in group}
        while True:
            candidate = f"enc_{uuid.uuid4().hex[:12]}"
            if candidate not in taken:
                return candidate

    def add_encounter(self, patient_id: str, display_name: str, on_date: dt.date) -> Encounter:
        encounter = Encounter(id=self._new_encounter_id(), display_name=display_name, date=on_date)
        self.encounters.setdefault(patient_id, []).append(encounter)
        return encounter

    def put_note(self, encounter_id: str, content: str) -> None:
        self.notes[encounter_id] = content


SEED_PATIENTS = [
    Patient(id="pat_12345_dummy", display_name="John Doe", display_id="JD-001",
            display_gender="Male", display_birthdate=dt.date(1970, 6, 22)),
    Patient(id="pat_67890_dummy", display_name="Jane Doe", display_id="JD-002",
            display_gender="Female", display_birthdate=dt.date(2000, 5, 15)),
    # no summary entry: summary and encounter lookups report this one as unknown
    Patient(id="pat_24680_dummy", display_name="Alex Roe", display_id="JD-003",
            display_gender="Other", display_birthdate=dt.date(1985, 11, 3)),
]

SEED_SUMMARIES = {
    "pat_12345_dummy": "John Doe has a history of hypertension and is currently on Lisinopril. "
                       "He reports no new complaints today. Vitals are stable.",
    "pat_67890_dummy": "Jane Doe is here for her annual check-up. She has a pollen allergy and uses "
                       "a seasonal nasal spray. She is up-to-date on all vaccinations.",
}

SEED_ENCOUNTERS = {
    "pat_12345_dummy": [
        (Encounter(id="enc_seed_0001", display_name="Hypertension follow-up", date=dt.date(2024, 3, 1)),
         "BP 138/86. Continue Lisinopril 10mg daily. Recheck in 3 months."),
        (Encounter(id="enc_seed_0002", display_name="Annual physical", date=dt.date(2024, 9, 12)),
         {"subjective": "No complaints.", "objective": "Vitals stable.",
          "assessment": "Well adult.", "plan": "Routine labs."}),
    ],
}


def render_note_content(notes) -> str:
    """Plain notes are stored verbatim; structured notes as 2-space JSON."""
    if isinstance(notes, str):
        return notes
    return json.dumps(notes, indent=2)


def seed_store() -> ClinicalStore:
    store = ClinicalStore()
    for patient in SEED_PATIENTS:
        store.patients[patient.id] = patient
    store.summaries.update(SEED_SUMMARIES)
    for patient_id, entries in SEED_ENCOUNTERS.items():
        for encounter, note in entries:
            store.encounters.setdefault(patient_id, []).append(encounter.model_copy())
            store.put_note(encounter.id, render_note_content(note))
    return store
