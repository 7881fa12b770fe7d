from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from tweetdoc.document import Line, LinkRun, Paragraph, TextRun
from tweetdoc.export_pdf import export_document_pdf, paragraph_markup
from tweetdoc.post import Author, Media, Post, Reference
from tweetdoc.render import render_timeline


class TestParagraphMarkup(unittest.TestCase):
    def test_escapes_text_and_links(self) -> None:
        paragraph = Paragraph(
            (
                Line((TextRun("a < b "), LinkRun('https://x.co/?q="1"&r', "x & y", "link", "src"))),
                Line((TextRun("next"),)),
            )
        )
        self.assertEqual(
            paragraph_markup(paragraph),
            'a &lt; b <a href="https://x.co/?q=&quot;1&quot;&amp;r" color="blue">x &amp; y</a><br/>next',
        )


class TestExportPDF(unittest.TestCase):
    def test_exports_non_empty_pdf(self) -> None:
        try:
            import reportlab  # noqa: F401
        except Exception as e:  # pragma: no cover
            raise AssertionError("reportlab is required for this test") from e

        posts = [
            Post(id="1", text="Hello\n\nWorld", attachment_keys=("m1",)),
            Post(id="2", text="quote", references=(Reference("quoted", "9"),)),
            Post(id="3", text=""),
        ]
        media = [Media(key="m1", kind="photo", url="https://img/1.jpg", width=10, height=10)]
        doc = render_timeline(
            posts,
            media,
            [Post(id="9", text="inner")],
            author=Author(id="12", username="jack"),
        )

        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "sub" / "timeline.pdf"
            export_document_pdf("@jack", doc, out_path)

            self.assertTrue(out_path.exists())
            data = out_path.read_bytes()
            self.assertTrue(data.startswith(b"%PDF"))
            self.assertGreater(len(data), 500)


if __name__ == "__main__":
    unittest.main()
