"""Unit tests for renderers used by SheetExporter."""

from code2score.sheet_models import ScoreDocument, VexflowMeasure, VexflowNote
from code2score.sheet_renderers import VexflowHtmlRenderer, VexflowMarkdownRenderer


def _sample_document() -> ScoreDocument:
    return ScoreDocument(
        title="Demo",
        time_signature="3/4",
        beats=3,
        beat_value=4,
        key_signature="Bb",
        measures=[
            VexflowMeasure(
                notes=[VexflowNote(keys=["c/4"], duration="q", accidentals=[None], annotation="p")],
            )
        ],
    )


def test_vexflow_markdown_renderer_has_heading() -> None:
    renderer = VexflowMarkdownRenderer()
    content = renderer.render(title="My Song", score_document=_sample_document())
    assert content.startswith("# My Song")


def test_vexflow_markdown_renderer_includes_container_and_script() -> None:
    renderer = VexflowMarkdownRenderer()
    content = renderer.render(title="Song", score_document=_sample_document())
    assert '<div id="code2score-score"></div>' in content
    assert 'id="code2score-score-data"' in content
    assert 'type="module"' in content


def test_vexflow_markdown_renderer_includes_vexflow_import() -> None:
    renderer = VexflowMarkdownRenderer()
    content = renderer.render(title="Song", score_document=_sample_document())
    assert "cdn.jsdelivr.net/npm/vexflow" in content


def test_vexflow_markdown_renderer_embeds_score_payload() -> None:
    renderer = VexflowMarkdownRenderer()
    content = renderer.render(title="Song", score_document=_sample_document())
    assert '"time_signature":"3/4"' in content
    assert '"key_signature":"Bb"' in content
    assert '"keys":["c/4"]' in content
    assert '"annotation":"p"' in content


def test_payload_cannot_close_script_tag() -> None:
    document = _sample_document()
    hostile = ScoreDocument(
        title="</script><b>",
        time_signature=document.time_signature,
        beats=document.beats,
        beat_value=document.beat_value,
        key_signature=document.key_signature,
        measures=document.measures,
    )
    content = VexflowMarkdownRenderer().render(title="x", score_document=hostile)
    assert "</script><b>" not in content


def test_html_renderer_title_in_title_tag() -> None:
    html = VexflowHtmlRenderer().render(title="My Song", score_document=_sample_document())
    assert "<title>My Song</title>" in html
    assert "<h1>My Song</h1>" in html


def test_html_renderer_empty_title_no_h1() -> None:
    html = VexflowHtmlRenderer().render(title="", score_document=_sample_document())
    assert "<h1>" not in html


def test_html_renderer_escapes_title() -> None:
    html = VexflowHtmlRenderer().render(title="<Cool> & Co", score_document=_sample_document())
    assert "&lt;Cool&gt; &amp; Co" in html


def test_html_renderer_is_valid_html_skeleton() -> None:
    html = VexflowHtmlRenderer().build_html("Skeleton", "<div></div>")
    assert html.startswith("<!DOCTYPE html>")
    assert "<html" in html
    assert "</html>" in html
    assert "<body>" in html
    assert "@media print" in html


def test_default_extensions() -> None:
    assert VexflowMarkdownRenderer().default_extension == ".md"
    assert VexflowHtmlRenderer().default_extension == ".html"
