from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined, select_autoescape

from .document import LineBreak, LinkRun, Paragraph, RenderedDocument, RenderedPost, Separator, TextRun
from .errors import ExportError

STYLESHEET = """\
main { max-width: 48rem; margin: 0 auto; font-family: system-ui, sans-serif; line-height: 1.5; }
h1.error { color: #b91c1c; }
article.post p { margin: 0 0 0.75rem; }
a.hashtag, a.mention { text-decoration: none; }
blockquote.quoted { border-left: 3px solid #d4d4d8; margin: 0.5rem 0; padding-left: 1rem; color: #3f3f46; }
figure.media { margin: 0.5rem 0; }
figure.media img { max-width: 100%; height: auto; }
"""

_TEMPLATES: dict[str, str] = {
    "base.html": """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta http-equiv="X-UA-Compatible" content="IE=edge">
<meta name="viewport" content="width=device-width, initial-scale=1">
<link href="{{ stylesheet }}" rel="stylesheet">
<title>{{ title }}</title>
</head>
<body>
<main class="prose">
{% block content %}{% endblock %}
</main>
</body>
</html>
""",
    "macros.html": """\
{% macro render_post(post) -%}
<article class="post" id="post-{{ post.id }}">
{%- for paragraph in post.paragraphs %}
<p>{% for run in paragraph %}{% if run.type == "text" %}{{ run.text }}{% elif run.type == "link" %}<a class="{{ run.kind }}" href="{{ run.url }}">{{ run.label }}</a>{% else %}<br>{% endif %}{% endfor %}</p>
{%- endfor %}
{%- for media in post.media %}
<figure class="media"><img src="{{ media.url }}" width="{{ media.width }}" height="{{ media.height }}" alt="" loading="lazy"></figure>
{%- endfor %}
{%- if post.quoted %}
<blockquote class="quoted">
{{ render_post(post.quoted) }}
</blockquote>
{%- endif %}
</article>
{%- endmacro %}
""",
    "page.html": """\
{% extends "base.html" %}
{% block content %}
{%- from "macros.html" import render_post %}
<h1>{{ title }}</h1>
{%- if author %}
<p class="author"><a href="{{ author.url }}">@{{ author.username }}</a></p>
{%- endif %}
{%- for block in blocks %}
{% if block is none %}<hr>{% else %}{{ render_post(block) }}{% endif %}
{%- endfor %}
{% endblock %}
""",
    "error.html": """\
{% extends "base.html" %}
{% block content %}
<h1 class="error">{{ title }}</h1>
{% endblock %}
""",
}

_env = Environment(
    loader=DictLoader(_TEMPLATES),
    autoescape=select_autoescape(default=True, default_for_string=True),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def _run_view(run: Any) -> dict[str, Any]:
    if isinstance(run, TextRun):
        return {"type": "text", "text": run.text}
    if isinstance(run, LinkRun):
        return {"type": "link", "url": run.url, "label": run.label, "kind": run.kind}
    if isinstance(run, LineBreak):
        return {"type": "br"}
    raise TypeError(f"unknown run type: {type(run).__name__}")


def _paragraph_view(paragraph: Paragraph) -> list[dict[str, Any]]:
    return [_run_view(r) for r in paragraph.runs()]


def post_view(post: RenderedPost) -> dict[str, Any]:
    return {
        "id": post.post_id,
        "paragraphs": [_paragraph_view(p) for p in post.paragraphs],
        "media": [
            {"url": m.url, "width": m.width, "height": m.height} for m in post.media
        ],
        "quoted": post_view(post.quoted) if post.quoted is not None else None,
    }


def render_page(
    title: str,
    document: RenderedDocument,
    *,
    profile_base_url: str = "https://twitter.com",
    stylesheet: str = "style.css",
) -> str:
    """Render a document as a standalone HTML page. Separators become <hr>."""
    author = None
    if document.author is not None:
        author = {
            "username": document.author.username,
            "url": document.author.profile_url(profile_base_url),
        }

    blocks = [
        None if isinstance(b, Separator) else post_view(b) for b in document.blocks()
    ]
    return _env.get_template("page.html").render(
        title=title,
        author=author,
        blocks=blocks,
        stylesheet=stylesheet,
    )


def render_error_page(code: int, message: str, *, stylesheet: str = "style.css") -> str:
    return _env.get_template("error.html").render(
        title=f"{int(code)}—{message}",
        stylesheet=stylesheet,
    )


def export_error_page(
    code: int,
    message: str,
    out_dir: str | Path,
    *,
    filename: str = "error.html",
) -> Path:
    out = Path(out_dir)
    try:
        out.mkdir(parents=True, exist_ok=True)
        page = out / filename
        page.write_text(render_error_page(code, message), encoding="utf-8")
        (out / "style.css").write_text(STYLESHEET, encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write error page to {out}: {e}") from e
    return page


def export_html(
    title: str,
    document: RenderedDocument,
    out_dir: str | Path,
    *,
    profile_base_url: str = "https://twitter.com",
    filename: str = "index.html",
) -> Path:
    """Write the page and its stylesheet into out_dir; returns the page path."""
    out = Path(out_dir)
    try:
        out.mkdir(parents=True, exist_ok=True)
        page = out / filename
        page.write_text(
            render_page(title, document, profile_base_url=profile_base_url),
            encoding="utf-8",
        )
        (out / "style.css").write_text(STYLESHEET, encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write HTML export to {out}: {e}") from e
    return page
