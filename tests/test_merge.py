from __future__ import annotations

import unittest
from typing import Any

from tweetdoc.document import LINE_BREAK, Line, LinkRun, Paragraph, TextRun
from tweetdoc.entities import collect_entities
from tweetdoc.merge import merge_line, merge_paragraph, merge_paragraphs
from tweetdoc.offsets import TextBuffer
from tweetdoc.post import Entity, Post
from tweetdoc.segment import LineRange, segment


def _e(kind: Any, start: int, end: int, url: str = "https://example.com") -> Entity:
    return Entity(kind=kind, start=start, end=end, target_url=url, display_label=f"{kind}-label")


def _merge(text: str, *entities: Entity) -> list[Any]:
    ordered = collect_entities(Post(id="1", text=text, entities=entities))
    return merge_line(TextBuffer(text), ordered, LineRange(0, len(text)))


class TestMergeLine(unittest.TestCase):
    def test_no_entities_is_plain_text(self) -> None:
        self.assertEqual(_merge("just words"), [TextRun("just words")])
        self.assertEqual(_merge(""), [])

    def test_interleaves_text_and_links(self) -> None:
        runs = _merge("hi @biz and #tag", _e("mention", 3, 7), _e("hashtag", 12, 16))
        self.assertEqual(
            runs,
            [
                TextRun("hi "),
                LinkRun("https://example.com", "mention-label", "mention", "@biz"),
                TextRun(" and "),
                LinkRun("https://example.com", "hashtag-label", "hashtag", "#tag"),
            ],
        )

    def test_multibyte_text_before_entity(self) -> None:
        runs = _merge("👋 @biz hi", _e("mention", 2, 6))
        self.assertEqual(runs[0], TextRun("👋 "))
        self.assertEqual(runs[1].source, "@biz")
        self.assertEqual(runs[2], TextRun(" hi"))

    def test_shared_start_emits_single_link(self) -> None:
        runs = _merge("abcde fgh", _e("hashtag", 0, 3), _e("link", 0, 5))
        links = [r for r in runs if isinstance(r, LinkRun)]

        self.assertEqual(len(links), 1)
        self.assertEqual(links[0].kind, "link")
        self.assertEqual(runs, [links[0], TextRun(" fgh")])

    def test_partial_overlap_is_skipped(self) -> None:
        runs = _merge("0123456789", _e("link", 0, 5), _e("mention", 3, 8))
        self.assertEqual(len(runs), 2)
        self.assertEqual(runs[0].source, "01234")
        self.assertEqual(runs[1], TextRun("56789"))

    def test_reconstructs_line_text(self) -> None:
        cases = [
            ("Hello https://x.co/y world", [_e("link", 6, 20)]),
            ("#a #b #c", [_e("hashtag", 0, 2), _e("hashtag", 3, 5), _e("hashtag", 6, 8)]),
            ("ünïcödé @mé ✨", [_e("mention", 8, 11)]),
            ("@start and end@x", [_e("mention", 0, 6), _e("mention", 14, 16)]),
        ]
        for text, entities in cases:
            with self.subTest(text=text):
                runs = _merge(text, *entities)
                self.assertEqual(Line(tuple(runs)).source_text(), text)

    def test_only_entities_starting_in_line_apply(self) -> None:
        text = "one\n#two"
        buf = TextBuffer(text)
        entities = [_e("hashtag", 4, 8)]
        lines = segment(text)[0].lines

        self.assertEqual(merge_line(buf, entities, lines[0]), [TextRun("one")])
        self.assertEqual(merge_line(buf, entities, lines[1])[0].source, "#two")


class TestMergeParagraph(unittest.TestCase):
    def test_line_breaks_between_lines_only(self) -> None:
        text = "a\nb"
        lines = merge_paragraph(TextBuffer(text), [], segment(text)[0])
        self.assertEqual(
            Paragraph(lines).runs(),
            [TextRun("a"), LINE_BREAK, TextRun("b")],
        )

    def test_link_spanning_a_newline_is_not_repeated(self) -> None:
        text = "ab\ncd"
        lines = merge_paragraph(TextBuffer(text), [_e("link", 1, 4)], segment(text)[0])
        self.assertEqual(
            Paragraph(lines).runs(),
            [
                TextRun("a"),
                LinkRun("https://example.com", "link-label", "link", "b\nc"),
                LINE_BREAK,
                TextRun("d"),
            ],
        )

    def test_link_spanning_a_blank_line_consumes_following_paragraph_start(self) -> None:
        text = "ab\n\ncd\nef"
        merged = merge_paragraphs(TextBuffer(text), [_e("link", 1, 6)], segment(text))

        self.assertEqual(len(merged), 2)
        self.assertEqual(merged[0][0].runs[1].source, "b\n\ncd")
        self.assertEqual(merged[1][0].runs, ())
        self.assertEqual(merged[1][1].runs, (TextRun("ef"),))

    def test_entity_inside_consumed_span_is_skipped(self) -> None:
        text = "ab\n#cd"
        post = Post(id="1", text=text, entities=(_e("link", 0, 5), _e("hashtag", 3, 6)))
        merged = merge_paragraphs(TextBuffer(text), collect_entities(post), segment(text))

        links = [r for line in merged[0] for r in line.runs if isinstance(r, LinkRun)]
        self.assertEqual([r.kind for r in links], ["link"])
        self.assertEqual(merged[0][1].runs, (TextRun("d"),))


if __name__ == "__main__":
    unittest.main()
