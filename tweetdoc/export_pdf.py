from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

from .document import LineBreak, LinkRun, Paragraph, RenderedDocument, RenderedPost, Separator, TextRun
from .errors import ExportError


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _attr(value: str) -> str:
    return escape(value or "", {'"': "&quot;"})


def paragraph_markup(paragraph: Paragraph) -> str:
    """Reportlab mini-markup for one paragraph: escaped text, <a> links, <br/> breaks."""
    parts: list[str] = []
    for run in paragraph.runs():
        if isinstance(run, TextRun):
            parts.append(escape(run.text))
        elif isinstance(run, LinkRun):
            parts.append(f'<a href="{_attr(run.url)}" color="blue">{escape(run.label)}</a>')
        elif isinstance(run, LineBreak):
            parts.append("<br/>")
    return "".join(parts)


def export_document_pdf(
    title: str,
    document: RenderedDocument,
    out_path: str | Path,
    *,
    profile_base_url: str = "https://twitter.com",
) -> Path:
    try:
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import LETTER
        from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
        from reportlab.lib.units import inch
        from reportlab.platypus import HRFlowable, Indenter, Paragraph as PdfParagraph
        from reportlab.platypus import SimpleDocTemplate, Spacer
    except ImportError as e:
        raise ExportError("reportlab is required for PDF export") from e

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    styles = getSampleStyleSheet()
    h1 = styles["Heading1"]
    body = styles["BodyText"]
    small = ParagraphStyle("Small", parent=body, fontSize=8.5, leading=10.5, textColor=colors.grey)

    def P(markup: str, style: Any = body) -> PdfParagraph:
        return PdfParagraph(markup or "&nbsp;", style)

    def post_flowables(post: RenderedPost, *, nested: bool) -> list[Any]:
        flow: list[Any] = []
        if nested:
            flow.append(Indenter(left=0.3 * inch))
        for paragraph in post.paragraphs:
            flow.append(P(paragraph_markup(paragraph)))
        for media in post.media:
            url = media.url or ""
            flow.append(
                P(
                    f'Photo {media.width}×{media.height}: '
                    f'<a href="{_attr(url)}" color="blue">{escape(url)}</a>',
                    small,
                )
            )
        if post.quoted is not None:
            flow.extend(post_flowables(post.quoted, nested=True))
        if nested:
            flow.append(Indenter(left=-0.3 * inch))
        return flow

    story: list[Any] = [P(escape(title), h1)]
    if document.author is not None:
        url = document.author.profile_url(profile_base_url)
        story.append(P(f'<a href="{_attr(url)}" color="blue">@{escape(document.author.username)}</a>'))
    story.append(P(f"Generated {escape(_utc_now_iso())}", small))
    story.append(Spacer(1, 0.2 * inch))

    for block in document.blocks():
        if isinstance(block, Separator):
            story.append(HRFlowable(width="100%", color=colors.lightgrey, spaceBefore=6, spaceAfter=6))
            continue
        story.extend(post_flowables(block, nested=False))

    try:
        doc = SimpleDocTemplate(
            str(out),
            pagesize=LETTER,
            title=title,
            leftMargin=0.8 * inch,
            rightMargin=0.8 * inch,
            topMargin=0.8 * inch,
            bottomMargin=0.8 * inch,
        )
        doc.build(story)
    except Exception as e:
        raise ExportError(f"Failed to write PDF export to {out}: {e}") from e

    return out
