"""Renderer implementations for sheet music output formats."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict

from code2score.sheet_models import ScoreDocument

VEXFLOW_URL = "https://cdn.jsdelivr.net/npm/vexflow@4.2.3/build/esm/entry/vexflow.js"


def _escape_html(text: str) -> str:
    """Escape the three characters that are unsafe in HTML text content."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _score_payload(score_document: ScoreDocument) -> str:
    """Serialize a score document for embedding inside a <script> element."""
    score_json = json.dumps(asdict(score_document), separators=(",", ":"))
    return score_json.replace("</", "<\\/")


def _vexflow_block(score_document: ScoreDocument) -> str:
    """Score container, JSON payload and the module script that draws it."""
    score_json = _score_payload(score_document)

    return f"""<style>
  #code2score-score {{
    display: grid;
    gap: 1.25rem;
    margin-top: 1rem;
  }}
  .code2score-measure {{
    border: 1px solid #d8d8d8;
    border-radius: 8px;
    background: #ffffff;
    padding: 0.5rem;
    overflow-x: auto;
  }}
</style>

<div id="code2score-score"></div>
<script id="code2score-score-data" type="application/json">{score_json}</script>
<script type="module">
  import {{
    Accidental,
    Annotation,
    Formatter,
    Renderer,
    Stave,
    StaveNote,
    Voice
  }} from "{VEXFLOW_URL}";

  const host = document.getElementById("code2score-score");
  const payloadNode = document.getElementById("code2score-score-data");

  if (!host || !payloadNode) {{
    throw new Error("Missing VexFlow score container.");
  }}

  const payload = JSON.parse(payloadNode.textContent || "{{}}");
  const beats = Number(payload.beats) || 4;
  const beatValue = Number(payload.beat_value) || 4;
  const timeSignature = payload.time_signature || "4/4";
  const keySignature = payload.key_signature || "C";

  const defaultRest = [{{ keys: ["b/4"], duration: "wr", accidentals: [null], annotation: null }}];
  const measures = Array.isArray(payload.measures) && payload.measures.length > 0
    ? payload.measures
    : [{{ notes: defaultRest }}];

  const toStaveNotes = (entries) => entries.map((entry) => {{
    const staveNote = new StaveNote({{
      clef: "treble",
      keys: Array.isArray(entry.keys) && entry.keys.length > 0 ? entry.keys : ["c/4"],
      duration: entry.duration || "q",
    }});

    if (Array.isArray(entry.accidentals)) {{
      entry.accidentals.forEach((symbol, noteIndex) => {{
        if (symbol) {{
          staveNote.addModifier(new Accidental(symbol), noteIndex);
        }}
      }});
    }}

    if (entry.annotation) {{
      const mark = new Annotation(entry.annotation);
      mark.setVerticalJustification(Annotation.VerticalJustify.BOTTOM);
      staveNote.addModifier(mark, 0);
    }}

    return staveNote;
  }});

  measures.forEach((measure, index) => {{
    const measureRoot = document.createElement("div");
    measureRoot.className = "code2score-measure";
    host.appendChild(measureRoot);

    const renderer = new Renderer(measureRoot, Renderer.Backends.SVG);
    renderer.resize(760, 160);
    const context = renderer.getContext();

    const stave = new Stave(20, 24, 700);
    stave.addClef("treble");
    if (index === 0) {{
      stave.addKeySignature(keySignature).addTimeSignature(timeSignature);
    }}
    stave.setContext(context).draw();

    const entries = Array.isArray(measure.notes) && measure.notes.length > 0
      ? measure.notes
      : defaultRest;

    const voice = new Voice({{ num_beats: beats, beat_value: beatValue }});
    voice.setMode(Voice.Mode.SOFT);
    voice.addTickables(toStaveNotes(entries));

    new Formatter().joinVoices([voice]).format([voice], 580);
    voice.draw(context, stave);
  }});
</script>
"""


class SheetRenderer(ABC):
    """Abstract sheet renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, *, title: str, score_document: ScoreDocument) -> str:
        """Render output into a file content string."""


class VexflowMarkdownRenderer(SheetRenderer):
    """Render a score document into Markdown with an embedded VexFlow script."""

    @property
    def default_extension(self) -> str:
        return ".md"

    def render(self, *, title: str, score_document: ScoreDocument) -> str:
        title_safe = _escape_html(title)

        return f"""# {title_safe}

Key: {_escape_html(score_document.key_signature)}  |  Time: {score_document.time_signature}

This Markdown uses embedded JavaScript + VexFlow. Open it in a Markdown viewer that allows script execution.

{_vexflow_block(score_document)}"""


class VexflowHtmlRenderer(SheetRenderer):
    """Render a score document into a self-contained HTML page driven by VexFlow."""

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(self, *, title: str, score_document: ScoreDocument) -> str:
        return self.build_html(title, _vexflow_block(score_document))

    def build_html(self, title: str, body: str) -> str:
        """
        Wrap rendered score markup in an HTML document.

        The stylesheet includes screen styles (white card on a grey background)
        and print styles (no background, one bar per block without shadows).
        """
        title_safe = _escape_html(title)
        heading = f"  <h1>{title_safe}</h1>\n" if title else ""

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title_safe}</title>
  <style>
    *, *::before, *::after {{ box-sizing: border-box; }}
    body {{
      font-family: Georgia, serif;
      background: #f0f0f0;
      margin: 0;
      padding: 2rem;
    }}
    h1 {{
      text-align: center;
      font-size: 1.6rem;
      margin-bottom: 2rem;
      color: #222;
    }}
    .page {{
      background: #fff;
      box-shadow: 0 2px 8px rgba(0, 0, 0, 0.15);
      margin: 0 auto 3rem;
      max-width: 860px;
      padding: 1rem;
    }}
    @media print {{
      body {{
        background: #fff;
        padding: 0;
        margin: 0;
      }}
      .page {{
        box-shadow: none;
        max-width: 100%;
        padding: 0;
        margin: 0;
      }}
      .code2score-measure {{
        page-break-inside: avoid;
      }}
    }}
  </style>
</head>
<body>
{heading}  <div class="page">
{body}
  </div>
</body>
</html>"""
