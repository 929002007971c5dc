from mock_emr.models import parse_submission
from mock_emr.viewer import NO_NOTE_HTML, render_note_page


def test_no_submission_is_404():
    assert render_note_page(None) == (404, NO_NOTE_HTML)


def test_plain_note_page():
    submission = parse_submission({
        "patient_id": "pat_1",
        "note_title": "Visit",
        "transcript": "hello",
        "notes": "line one\nline two",
        "audio_base64": ["data:audio/webm;base64,AAAA", "data:audio/webm;base64,BBBB"],
    })
    status, page = render_note_page(submission)
    assert status == 200
    assert "pat_1" in page
    assert "Encounter ID:</span> New" in page
    assert "<pre>line one\nline two</pre>" in page
    assert "<pre>hello</pre>" in page
    assert page.count("<audio controls") == 2
    assert 'src="data:audio/webm;base64,BBBB"' in page
    assert "Audio Recording 2" in page
    assert "Template:" not in page


def test_missing_transcript_renders_empty_block():
    submission = parse_submission({"patient_id": "p", "note_title": "t", "notes": "n"})
    _, page = render_note_page(submission)
    assert "<pre></pre>" in page
    assert "None" not in page


def test_user_content_is_escaped():
    submission = parse_submission({
        "patient_id": "<script>alert(1)</script>",
        "note_title": "t",
        "notes": "<b>bold</b>",
        "encounter_id": "enc_1",
    })
    _, page = render_note_page(submission)
    assert "<script>" not in page
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in page
    assert "&lt;b&gt;bold&lt;/b&gt;" in page
    assert "Encounter ID:</span> enc_1" in page


def test_text_keeps_quotes_and_attributes_are_quoted():
    submission = parse_submission({
        "patient_id": "p",
        "note_title": "Dr's note",
        "notes_json": {"a": 1},
        "notes_template": "soap",
        "audio_base64": ['data:audio/webm;base64,"x'],
    })
    _, page = render_note_page(submission)
    assert '<pre>{\n  "a": 1\n}</pre>' in page
    assert "Dr's note" in page
    assert 'src="data:audio/webm;base64,&quot;x"' in page
    assert "Template:</span> soap" in page
