from __future__ import annotations

from .config import config_sha256, load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .document import (
    LINE_BREAK,
    SEPARATOR,
    Line,
    LineBreak,
    LinkRun,
    Paragraph,
    RenderedDocument,
    RenderedPost,
    TextRun,
    assemble,
)
from .errors import (
    ConfigError,
    IncompleteMediaError,
    MalformedEntityError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamNotFound,
    UpstreamTransportError,
)
from .post import Author, Entity, Media, Post, Reference
from .render import embed_quote, render_post, render_timeline

__all__ = [
    "AppConfig",
    "Author",
    "ConfigError",
    "Entity",
    "IncompleteMediaError",
    "LINE_BREAK",
    "Line",
    "LineBreak",
    "LinkRun",
    "MalformedEntityError",
    "Media",
    "Paragraph",
    "Post",
    "Reference",
    "RenderedDocument",
    "RenderedPost",
    "SEPARATOR",
    "TextRun",
    "UpstreamAuthError",
    "UpstreamError",
    "UpstreamNotFound",
    "UpstreamTransportError",
    "assemble",
    "config_sha256",
    "embed_quote",
    "load_config",
    "render_post",
    "render_timeline",
    "resolve_runtime_secrets",
]
