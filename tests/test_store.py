import datetime as dt

import pytest

from mock_emr.db import ClinicalStore, render_note_content, seed_store
from mock_emr.errors import InvalidInput, NotFound


def test_patients_in_insertion_order(store):
    ids = [p.id for p in store.get_patients()]
    assert ids == ["pat_12345_dummy", "pat_67890_dummy", "pat_24680_dummy"]


def test_get_encounter(store):
    assert store.get_encounter("enc_seed_0002").display_name == "Annual physical"
    with pytest.raises(NotFound):
        store.get_encounter("enc_missing")


def test_set_summary_replaces_text(store):
    store.set_summary("pat_67890_dummy", "Updated.")
    assert store.get_summary("pat_67890_dummy") == "Updated."


def test_set_summary_rejects_non_string(store):
    before = store.get_summary("pat_67890_dummy")
    with pytest.raises(InvalidInput):
        store.set_summary("pat_67890_dummy", 42)
    assert store.get_summary("pat_67890_dummy") == before


def test_set_summary_not_found_checked_before_type(store):
    with pytest.raises(NotFound):
        store.set_summary("pat_missing", 42)


def test_patient_without_seeded_summary_cannot_gain_one(store):
    assert "pat_24680_dummy" in store.patients
    with pytest.raises(NotFound):
        store.set_summary("pat_24680_dummy", "new text")
    assert "pat_24680_dummy" not in store.summaries


def test_encounters_empty_for_known_patient(store):
    assert store.get_encounters("pat_67890_dummy") == []


def test_encounters_unknown_patient(store):
    with pytest.raises(NotFound):
        store.get_encounters("pat_24680_dummy")


def test_add_encounter_creates_list_and_appends(store):
    first = store.add_encounter("pat_new", "Visit one", dt.date(2025, 1, 2))
    second = store.add_encounter("pat_new", "Visit two", dt.date(2025, 1, 3))
    assert [e.id for e in store.encounters["pat_new"]] == [first.id, second.id]
    assert first.id != second.id
    assert first.id.startswith("enc_")


def test_new_encounter_id_skips_taken_ids(monkeypatch):
    store = ClinicalStore()
    store.put_note("enc_aaaaaaaaaaaa", "old")
    hexes = iter(["a" * 32, "b" * 32])

    class _FakeUUID:
        def __init__(self, value):
            self.hex = value

    monkeypatch.setattr("mock_emr.db.uuid.uuid4", lambda: _FakeUUID(next(hexes)))
    encounter = store.add_encounter("p", "t", dt.date(2025, 1, 1))
    assert encounter.id == "enc_bbbbbbbbbbbb"


def test_encounter_note_lookup(store):
    assert store.get_encounter_note("enc_seed_0001").startswith("BP 138/86")
    with pytest.raises(NotFound):
        store.get_encounter_note("enc_missing")


def test_seeded_structured_note_is_pretty_printed(store):
    assert store.get_encounter_note("enc_seed_0002").startswith('{\n  "subjective"')


def test_render_note_content():
    assert render_note_content("plain text") == "plain text"
    assert render_note_content({"a": 1}) == '{\n  "a": 1\n}'


def test_seed_store_is_independent():
    a, b = seed_store(), seed_store()
    a.add_encounter("pat_12345_dummy", "x", dt.date(2025, 1, 1))
    assert len(b.get_encounters("pat_12345_dummy")) == 2
