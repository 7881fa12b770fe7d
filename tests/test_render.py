from __future__ import annotations

import unittest
from typing import Any

from tweetdoc.document import SEPARATOR, LinkRun, RenderedPost, TextRun, assemble
from tweetdoc.post import Author, Entity, Media, Post, Reference
from tweetdoc.render import embed_quote, render_post, render_timeline


class _RecordingLogger:
    def __init__(self) -> None:
        self.warnings: list[tuple[str, dict[str, Any]]] = []

    def warning(self, event: str, **data: Any) -> None:
        self.warnings.append((event, data))


def _photo(key: str) -> Media:
    return Media(key=key, kind="photo", url=f"https://img/{key}.jpg", width=4, height=3)


class TestRenderPost(unittest.TestCase):
    def test_paragraphs_with_link(self) -> None:
        text = "Hello\n\nWorld https://x.co/y"
        post = Post(
            id="1",
            text=text,
            entities=(
                Entity(
                    kind="link",
                    start=13,
                    end=27,
                    target_url="https://x.co/y",
                    display_label="x.co/y",
                ),
            ),
        )

        rendered = render_post(post, [], [])

        self.assertEqual(len(rendered.paragraphs), 2)
        self.assertEqual(rendered.paragraphs[0].runs(), [TextRun("Hello")])
        self.assertEqual(
            rendered.paragraphs[1].runs(),
            [
                TextRun("World "),
                LinkRun("https://x.co/y", "x.co/y", "link", "https://x.co/y"),
            ],
        )
        self.assertIsNone(rendered.quoted)

    def test_malformed_entity_renders_as_plain_text(self) -> None:
        log = _RecordingLogger()
        post = Post(
            id="1",
            text="hi there",
            entities=(Entity("mention", 3, 50, "https://t/u", "@u"),),
        )

        rendered = render_post(post, [], [], logger=log)  # type: ignore[arg-type]

        self.assertEqual(rendered.paragraphs[0].runs(), [TextRun("hi there")])
        self.assertEqual([w[0] for w in log.warnings], ["entity_malformed"])

    def test_media_attached(self) -> None:
        post = Post(id="1", text="pic", attachment_keys=("m1",))
        rendered = render_post(post, [_photo("m2"), _photo("m1")], [])
        self.assertEqual([m.key for m in rendered.media], ["m1"])


class TestQuoteEmbedding(unittest.TestCase):
    def test_quote_cycle_is_capped_at_one_level(self) -> None:
        a = Post(id="a", text="A", references=(Reference("quoted", "b"),))
        b = Post(id="b", text="B", references=(Reference("quoted", "a"),))

        rendered = render_post(a, [], [a, b])

        self.assertIsNotNone(rendered.quoted)
        assert rendered.quoted is not None
        self.assertEqual(rendered.quoted.post_id, "b")
        self.assertIsNone(rendered.quoted.quoted)

    def test_replies_and_retweets_are_ignored(self) -> None:
        target = Post(id="t", text="T")
        post = Post(
            id="p",
            text="P",
            references=(Reference("replied_to", "t"), Reference("retweeted", "t")),
        )
        self.assertIsNone(render_post(post, [], [target]).quoted)

    def test_quoted_post_uses_shared_media_pool(self) -> None:
        quoted = Post(id="q", text="Q", attachment_keys=("m9",))
        post = Post(id="p", text="P", references=(Reference("quoted", "q"),))

        rendered = render_post(post, [_photo("m9")], [quoted])

        assert rendered.quoted is not None
        self.assertEqual([m.key for m in rendered.quoted.media], ["m9"])
        self.assertEqual(rendered.media, ())

    def test_missing_quote_is_logged(self) -> None:
        log = _RecordingLogger()
        post = Post(id="p", text="P", references=(Reference("quoted", "gone"),))

        got = embed_quote(post, [], {}.get, logger=log)  # type: ignore[arg-type]

        self.assertIsNone(got)
        self.assertEqual(log.warnings[0][0], "quote_missing")
        self.assertEqual(log.warnings[0][1]["target_id"], "gone")

    def test_embed_quote_falls_through_to_next_quote(self) -> None:
        b = Post(id="b", text="B")
        post = Post(
            id="p",
            text="P",
            references=(Reference("quoted", "gone"), Reference("quoted", "b")),
        )
        got = embed_quote(post, [], {"b": b}.get)
        assert got is not None
        self.assertEqual(got.post_id, "b")


class TestRenderTimeline(unittest.TestCase):
    def test_separators_between_posts_only(self) -> None:
        posts = [Post(id=str(i), text=f"post {i}") for i in range(3)]
        author = Author(id="12", username="jack")

        doc = render_timeline(posts, [], [], author=author)
        blocks = list(doc.blocks())

        self.assertEqual(len(doc), 3)
        self.assertEqual(doc.author, author)
        self.assertEqual(len(blocks), 5)
        self.assertIs(blocks[1], SEPARATOR)
        self.assertIs(blocks[3], SEPARATOR)
        self.assertIsInstance(blocks[-1], RenderedPost)

    def test_single_and_empty_documents(self) -> None:
        single = assemble([render_post(Post(id="1", text="x"), [], [])])
        self.assertEqual(len(list(single.blocks())), 1)
        self.assertEqual(list(render_timeline([], [], []).blocks()), [])

    def test_posts_render_independently(self) -> None:
        post = Post(id="1", text="same")
        doc = render_timeline([post, post], [], [])
        self.assertEqual(doc.posts[0], doc.posts[1])
        self.assertIsNot(doc.posts[0], doc.posts[1])


if __name__ == "__main__":
    unittest.main()
