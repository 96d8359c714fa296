from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Callable, List, Optional

from tqdm.auto import tqdm

from article_layout.model import AdMarker, AdPlacementOptions, ArticleSegment, ContentBlock
from article_layout.services.ad_placement_service import AdPlacementService
from article_layout.services.gallery_service import GalleryService
from codes_site.core.managers.config_manager import config_manager

logger = logging.getLogger(__name__)

AdRenderer = Callable[[int], str]

DEFAULT_AD_SLOT = "in-article"


def default_ad_renderer(slot: str) -> AdRenderer:
    """Returns a renderer emitting an empty, fixed-slot placeholder the ad script fills client-side."""
    safe_slot = html.escape(slot, quote=True)

    def render(index: int) -> str:
        return f'<div class="ad-slot" data-ad-slot="{safe_slot}" data-ad-index="{index}"></div>'

    return render


class ArticleRenderController:
    """
    Orchestrates the article body pipeline: image galleries, ad placement and
    serialization of the resulting blocks into a single HTML string.
    """

    def __init__(
            self,
            options: Optional[AdPlacementOptions] = None,
            ad_renderer: Optional[AdRenderer] = None,
    ) -> None:
        self.options = options or AdPlacementOptions.from_config(config_manager.get_section("ad_placement"))
        self.ad_renderer = ad_renderer or default_ad_renderer(
            config_manager.get_nested("ads.slot", DEFAULT_AD_SLOT)
        )
        self.gallery_service = GalleryService()
        self.ad_service = AdPlacementService(self.options)

    def build_blocks(self, html_body: str) -> List[ArticleSegment]:
        """Groups galleries first, then splits the body around ad positions."""
        grouped = self.gallery_service.group_galleries(html_body)
        return self.ad_service.insert_ads(grouped)

    def serialize(self, blocks: List[ArticleSegment]) -> str:
        parts: List[str] = []
        ad_index = 0
        for block in blocks:
            if isinstance(block, AdMarker):
                parts.append(self.ad_renderer(ad_index))
                ad_index += 1
            elif isinstance(block, ContentBlock):
                parts.append(block.html)
        return "".join(parts)

    def render(self, html_body: str) -> str:
        return self.serialize(self.build_blocks(html_body))

    def render_directory(self, src_dir: Path, out_dir: Path, show_progress: bool = True) -> int:
        """
        Renders every *.html file in src_dir into out_dir under the same name.
        Files that fail to read or write are logged and skipped.

        Returns:
            int: The number of files rendered.
        """
        src_dir = Path(src_dir)
        out_dir = Path(out_dir)
        if not src_dir.is_dir():
            raise FileNotFoundError(f"Source directory not found: {src_dir}")
        out_dir.mkdir(parents=True, exist_ok=True)

        files = sorted(src_dir.glob("*.html"))
        iterator = files if not show_progress else tqdm(files, desc="Rendering articles", unit="file", leave=False)

        rendered = 0
        for path in iterator:
            try:
                body = path.read_text(encoding="utf-8")
                (out_dir / path.name).write_text(self.render(body), encoding="utf-8")
                rendered += 1
            except (OSError, UnicodeDecodeError) as e:
                logger.error("Failed to render %s: %s", path, e)

        logger.info("Rendered %d of %d article files into %s.", rendered, len(files), out_dir)
        return rendered
