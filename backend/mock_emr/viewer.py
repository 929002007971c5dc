import json
from html import escape
from typing import Optional, Tuple

from .models import StructuredNoteSubmission

NO_NOTE_HTML = "<h1>No note data available.</h1><p>Please post a note from the extension first.</p>"

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif; line-height: 1.6; padding: 20px; max-width: 900px; margin: auto; background-color: #f4f7f9; color: #333; }}
    h1, h2 {{ color: #1a2b4d; border-bottom: 2px solid #e0e0e0; padding-bottom: 10px; }}
    .container {{ background-color: #fff; padding: 20px 30px; border-radius: 8px; box-shadow: 0 4px 12px rgba(0,0,0,0.08); }}
    pre {{ background-color: #2d2d2d; color: #f8f8f2; padding: 15px; border-radius: 5px; white-space: pre-wrap; word-wrap: break-word; font-family: "Courier New", Courier, monospace; }}
    .label {{ font-weight: bold; color: #555; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>Received Medical Note</h1>
    <h2>Patient Information</h2>
    <p><span class="label">Patient ID:</span> {patient_id}</p>
    <p><span class="label">Encounter ID:</span> {encounter_id}</p>
    <p><span class="label">Note Title:</span> {title}</p>
{template_line}{audio}
    <h2>Full Transcript</h2>
    <pre>{transcript}</pre>

    <h2>Formatted Notes</h2>
    <pre>{notes}</pre>
  </div>
</body>
</html>
"""

AUDIO_TEMPLATE = """
    <h2>Audio Recording {index}</h2>
    <audio controls style="width: 100%;">
      <source src="{src}" type="audio/webm">
      Your browser does not support the audio element.
    </audio>
"""


def _text(value: str) -> str:
    return escape(value, quote=False)


def render_note_page(submission) -> Tuple[int, str]:
    """Return ``(status, html)`` for the viewer page.

    User content is escaped: text nodes keep their quotes, the audio ``src``
    attribute is fully quoted.
    """
    if submission is None:
        return 404, NO_NOTE_HTML

    audio = "".join(
        AUDIO_TEMPLATE.format(index=i, src=escape(clip, quote=True))
        for i, clip in enumerate(submission.audio_base64, start=1)
    )
    template_line = ""
    if isinstance(submission, StructuredNoteSubmission):
        notes = json.dumps(submission.notes_json, indent=2)
        template_line = f'    <p><span class="label">Template:</span> {_text(submission.notes_template)}</p>\n'
    else:
        notes = submission.notes

    page = PAGE_TEMPLATE.format(
        title=_text(submission.note_title),
        patient_id=_text(submission.patient_id),
        encounter_id=_text(submission.encounter_id or "New"),
        template_line=template_line,
        audio=audio,
        transcript=_text(submission.transcript or ""),
        notes=_text(notes),
    )
    return 200, page
