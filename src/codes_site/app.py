# ============================================
# file: src/codes_site/app.py
# ============================================
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from article_layout.controllers.render_controller import ArticleRenderController
from article_layout.model import AdPlacementOptions
from article_layout.services.ad_placement_service import AdPlacementService
from article_layout.services.gallery_service import GalleryService
from codes_site.core.managers.config_manager import config_manager
from codes_site.core.utils.configure_logging import configure_logger

logger = logging.getLogger(__name__)


def _add_option_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--words-per-ad", type=int, default=None, help="Target words between two ads.")
    parser.add_argument("--min-words", type=int, default=None, help="No ads below this word count.")
    parser.add_argument("--min-ads", type=int, default=None, help="Minimum number of ads.")
    parser.add_argument("--max-ads", type=int, default=None, help="Maximum number of ads.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="codes-site", description="Article layout tools for the codes site.")
    parser.add_argument("--log-level", type=str, default=None, help="Overrides debug.level from settings.json.")
    parser.add_argument("--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE",
                        help="Overrides a settings.json value for this run, e.g. --set ad_placement.max_ads=3.")
    subs = parser.add_subparsers(dest="command", help="Sub-command help")

    p_blocks = subs.add_parser("blocks", help="Print the content/ad block sequence of an HTML file as JSON.")
    p_blocks.add_argument("file", type=Path)
    _add_option_flags(p_blocks)

    p_gal = subs.add_parser("galleries", help="Print an HTML file with consecutive images grouped into galleries.")
    p_gal.add_argument("file", type=Path)

    p_render = subs.add_parser("render", help="Render every *.html file in a directory.")
    p_render.add_argument("src_dir", type=Path)
    p_render.add_argument("out_dir", type=Path)
    p_render.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    _add_option_flags(p_render)

    p_serve = subs.add_parser("serve", help="Run the article API server.")
    p_serve.add_argument("--host", type=str, default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.add_argument("--debug", action="store_true")

    return parser


def _options_from_args(pargs: argparse.Namespace) -> AdPlacementOptions:
    return AdPlacementOptions.from_config(
        config_manager.get_section("ad_placement"),
        {
            "words_per_ad": pargs.words_per_ad,
            "min_words": pargs.min_words,
            "min_ads": pargs.min_ads,
            "max_ads": pargs.max_ads,
        },
    )


def apply_config_overrides(assignments: List[str]) -> None:
    """Applies 'dotted.key=value' assignments to the in-memory configuration."""
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid --set value '{assignment}', expected KEY=VALUE.")
        if not config_manager.set_nested(key, value.strip()):
            raise ValueError(f"Cannot set '{key}': a parent key is not a section.")


def run_command(pargs: argparse.Namespace) -> int:
    if pargs.command == "blocks":
        blocks = AdPlacementService(_options_from_args(pargs)).insert_ads(pargs.file.read_text(encoding="utf-8"))
        print(json.dumps([block.model_dump() for block in blocks], ensure_ascii=False, indent=2))
        return 0

    if pargs.command == "galleries":
        print(GalleryService().group_galleries(pargs.file.read_text(encoding="utf-8")))
        return 0

    if pargs.command == "render":
        controller = ArticleRenderController(options=_options_from_args(pargs))
        count = controller.render_directory(pargs.src_dir, pargs.out_dir, show_progress=not pargs.no_progress)
        print(f"✅ Rendered {count} article(s) into {pargs.out_dir}")
        return 0

    if pargs.command == "serve":
        # Imported lazily so the batch commands don't pay for Flask
        from codes_site.server.app import run_server
        host = pargs.host or config_manager.get_nested("server.host", "127.0.0.1")
        port = pargs.port or config_manager.get_nested("server.port", 5000)
        run_server(host, int(port), debug=pargs.debug)
        return 0

    print(f"Unknown command: {pargs.command}")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        pargs = parser.parse_args(argv)
    except SystemExit as e:
        return 0 if e.code in (0, None) else 1

    if not pargs.command:
        parser.print_help()
        return 0

    try:
        apply_config_overrides(pargs.overrides)
    except ValueError as e:
        print(f"❌ Error: {e}")
        return 1

    configure_logger(
        general_level=pargs.log_level or config_manager.get_nested("debug.level", "INFO"),
        module_specific_levels=config_manager.get_section("debug").get("modules"),
        silenced_loggers=None if pargs.command == "serve" else {"werkzeug": "WARNING"},
    )

    try:
        return run_command(pargs)
    except ValidationError as e:
        print(f"❌ Error: Invalid ad placement options: {e}")
        return 1
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("IO failure in '%s'", pargs.command, exc_info=True)
        print(f"❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
