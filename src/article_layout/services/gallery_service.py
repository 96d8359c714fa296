from __future__ import annotations

import copy
import logging
from typing import List

from bs4 import BeautifulSoup, PageElement

from ..dom.blocks import is_image_block, load_top_level_nodes, serialize_node

logger = logging.getLogger(__name__)

GALLERY_CLASS = "article-gallery"
GALLERY_ITEM_CLASS = "article-gallery__item"
MIN_GALLERY_SIZE = 2
MAX_GALLERY_SIZE = 4


class GalleryService:
    """
    Collapses runs of 2-4 consecutive image-only blocks into a single gallery wrapper.
    Single images and runs longer than the gallery maximum are left as they are.
    """

    def __init__(self, min_size: int = MIN_GALLERY_SIZE, max_size: int = MAX_GALLERY_SIZE):
        self.min_size = min_size
        self.max_size = max_size

    def _build_gallery(self, group: List[PageElement]) -> str:
        factory = BeautifulSoup("", "html.parser")
        gallery = factory.new_tag("div", attrs={"class": GALLERY_CLASS, "data-count": str(len(group))})
        for entry in group:
            item = factory.new_tag("div", attrs={"class": GALLERY_ITEM_CLASS})
            # copy.copy on a bs4 Tag is a deep clone; the source tree stays untouched
            item.append(copy.copy(entry))
            gallery.append(item)
        return gallery.decode()

    def group_galleries(self, markup: str) -> str:
        if not markup or not markup.strip():
            return markup

        nodes = load_top_level_nodes(markup)
        if not nodes:
            return markup

        output: List[str] = []
        galleries = 0

        index = 0
        while index < len(nodes):
            node = nodes[index]
            if not is_image_block(node):
                output.append(serialize_node(node))
                index += 1
                continue

            cursor = index
            group: List[PageElement] = []
            while cursor < len(nodes) and is_image_block(nodes[cursor]):
                group.append(nodes[cursor])
                cursor += 1

            if self.min_size <= len(group) <= self.max_size:
                output.append(self._build_gallery(group))
                galleries += 1
            else:
                output.extend(serialize_node(entry) for entry in group)
            index = cursor

        if galleries:
            logger.debug("Grouped %d image galleries.", galleries)
        return "".join(output)


def group_galleries(markup: str) -> str:
    return GalleryService().group_galleries(markup)
