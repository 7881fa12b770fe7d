from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence

from .config import load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .document import assemble
from .errors import ConfigError, ExportError, UpstreamError, UpstreamNotFound
from .export_html import export_error_page, export_html
from .export_pdf import export_document_pdf
from .post import Media, Post
from .render import render_post, render_timeline
from .run_log import EventLogger
from .twitter_client import TwitterClient


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tweetdoc")

    subparsers = parser.add_subparsers(dest="command", required=True)

    timeline = subparsers.add_parser(
        "timeline",
        help="Render a user's most recent posts as an HTML page.",
    )
    timeline.add_argument("--config", required=True, help="Path to YAML config file.")
    timeline.add_argument("--user", required=True, help="Twitter handle, with or without @.")
    timeline.add_argument("--out", required=True, help="Output directory.")
    timeline.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Number of posts to render (defaults to twitter.max_results).",
    )
    timeline.add_argument(
        "--offline",
        action="store_true",
        help="Render a built-in fixture timeline without network calls.",
    )
    timeline.set_defaults(_handler=_cmd_timeline)

    post = subparsers.add_parser("post", help="Render a single post by id.")
    post.add_argument("--config", required=True, help="Path to YAML config file.")
    post.add_argument("--id", required=True, dest="post_id", help="Post id.")
    post.add_argument("--out", required=True, help="Output directory.")
    post.add_argument(
        "--offline",
        action="store_true",
        help="Look the post up in the built-in fixture instead of the API.",
    )
    post.set_defaults(_handler=_cmd_post)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def _make_client(cfg: AppConfig, args: argparse.Namespace, log: EventLogger) -> Any:
    if bool(getattr(args, "offline", False)):
        from .offline import OfflineTwitterClient

        return OfflineTwitterClient(render=cfg.render)

    secrets = resolve_runtime_secrets(cfg)
    return TwitterClient(
        secrets.bearer_token,
        config=cfg.twitter,
        render=cfg.render,
        logger=log,
    )


def _write_outputs(
    cfg: AppConfig,
    title: str,
    document: Any,
    out_dir: Path,
    log: EventLogger,
) -> None:
    page = export_html(title, document, out_dir, profile_base_url=cfg.render.profile_base_url)
    log.info("export_html_completed", path=str(page), posts=len(document))
    print(f"html={page}")

    if cfg.output.include_pdf:
        pdf_path = export_document_pdf(
            title,
            document,
            out_dir / "timeline.pdf",
            profile_base_url=cfg.render.profile_base_url,
        )
        log.info("export_pdf_completed", path=str(pdf_path))
        print(f"pdf={pdf_path}")


def _error_status(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, UpstreamNotFound):
        return 404, "Not Found"
    if isinstance(exc, UpstreamError):
        return 502, "Bad Gateway"
    return 500, "Internal Server Error"


def _write_error_page(exc: Exception, out_dir: Path, log: EventLogger) -> None:
    code, message = _error_status(exc)
    try:
        page = export_error_page(code, message, out_dir)
    except ExportError as write_err:
        log.error("export_error_page_failed", code=code, reason=str(write_err))
        return
    log.info("export_error_page_completed", path=str(page), code=code)
    print(f"error_page={page}")


def _run_logged(args: argparse.Namespace, command: str, body: Any) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    log_path = out_dir / "run.log"

    with EventLogger.open(log_path) as log:
        log.info(f"{command}_command_started", config_path=str(args.config), out_dir=str(out_dir))
        try:
            cfg = load_config(args.config)
            log.set_min_level(cfg.output.log_level)
            return body(cfg, out_dir, log)
        except Exception as e:
            log.exception(f"{command}_command_failed", exc=e)
            if isinstance(e, (UpstreamError, ExportError)):
                _write_error_page(e, out_dir, log)
            raise
        finally:
            print(f"run_log={log_path}")


def _cmd_timeline(args: argparse.Namespace) -> int:
    def body(cfg: AppConfig, out_dir: Path, log: EventLogger) -> int:
        client = _make_client(cfg, args, log)
        try:
            author = client.fetch_user(args.user)
            log.info("user_fetched", user_id=author.id, username=author.username)

            fetched = client.fetch_posts(author, args.limit)
            log.info(
                "posts_fetched",
                posts=len(fetched.posts),
                referenced_posts=len(fetched.referenced_posts),
                media=len(fetched.media),
            )
        finally:
            client.close()

        document = render_timeline(
            fetched.posts,
            fetched.media,
            fetched.referenced_posts,
            author=author,
            logger=log,
        )
        title = cfg.output.title_template.format(username=author.username)
        _write_outputs(cfg, title, document, out_dir, log)
        print(f"posts={len(document)}")
        return 0

    return _run_logged(args, "timeline", body)


def _cmd_post(args: argparse.Namespace) -> int:
    def body(cfg: AppConfig, out_dir: Path, log: EventLogger) -> int:
        client = _make_client(cfg, args, log)
        try:
            posts, media = client.fetch_posts_by_ids([args.post_id])
            post = next((p for p in posts if p.id == args.post_id), None)
            if post is None:
                raise UpstreamNotFound(f"Tweet not found: {args.post_id}")

            quoted_ids = [r.target_id for r in post.references if r.kind == "quoted"]
            referenced: list[Post] = []
            ref_media: list[Media] = []
            if quoted_ids:
                try:
                    referenced, ref_media = client.fetch_posts_by_ids(quoted_ids)
                except UpstreamNotFound as e:
                    log.warning("referenced_posts_missing", reason=str(e))
        finally:
            client.close()

        rendered = render_post(post, media + ref_media, referenced, logger=log)
        _write_outputs(cfg, f"Post {post.id}", assemble([rendered]), out_dir, log)
        return 0

    return _run_logged(args, "post", body)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except (UpstreamError, ExportError) as e:
        _eprint(str(e))
        return 3
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
