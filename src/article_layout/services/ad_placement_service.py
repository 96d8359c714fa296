from __future__ import annotations

import logging
import math
from typing import List, Optional

from ..dom.blocks import parse_article
from ..model import AdMarker, AdPlacementOptions, ArticleSegment, ContentBlock

logger = logging.getLogger(__name__)


def _clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


class AdPlacementService:
    """
    Splits article markup into content blocks with ad markers spread evenly by word count.

    Ads are never placed first, last, or directly after a heading/divider. When the
    word target is hit on such a block the ad is deferred to the next allowed block.
    This is a stateless service: every call parses its own document.
    """

    def __init__(self, options: Optional[AdPlacementOptions] = None):
        self.options = options or AdPlacementOptions()

    def insert_ads(self, markup: str) -> List[ArticleSegment]:
        if not markup or not markup.strip():
            return [ContentBlock(html="")]

        document = parse_article(markup)
        total_words = document.total_words

        if document.is_empty or total_words < self.options.min_words:
            logger.debug(
                "Skipping ad placement: %d blocks, %d words (min %d).",
                len(document.blocks), total_words, self.options.min_words
            )
            return [ContentBlock(html=markup)]

        desired_ads = math.ceil(total_words / max(1, self.options.words_per_ad))
        ad_count = _clamp(desired_ads, self.options.min_ads, self.options.max_ads)
        words_per_chunk = total_words / (ad_count + 1)
        logger.debug(
            "Placing up to %d ads over %d words (%.1f words per chunk).",
            ad_count, total_words, words_per_chunk
        )

        output: List[ArticleSegment] = []
        buffer: List[str] = []
        ads_inserted = 0
        words_since_ad = 0
        pending_ad = False
        last_index = len(document.blocks) - 1

        def flush_with_ad() -> None:
            nonlocal buffer, words_since_ad, ads_inserted, pending_ad
            output.append(ContentBlock(html="".join(buffer)))
            output.append(AdMarker())
            buffer = []
            words_since_ad = 0
            ads_inserted += 1
            pending_ad = False

        for index, block in enumerate(document.blocks):
            if not block.html:
                continue
            buffer.append(block.html)
            words_since_ad += block.word_count

            if ads_inserted >= ad_count:
                continue
            if index == last_index:
                continue

            reached_target = words_since_ad >= words_per_chunk

            if reached_target and block.allows_ad_after:
                flush_with_ad()
                continue

            if reached_target:
                pending_ad = True
                continue

            if pending_ad and block.allows_ad_after and words_since_ad > 0:
                flush_with_ad()

        if buffer:
            output.append(ContentBlock(html="".join(buffer)))

        return output or [ContentBlock(html=markup)]


def insert_ads(markup: str, options: Optional[AdPlacementOptions] = None) -> List[ArticleSegment]:
    """Functional shortcut for AdPlacementService(options).insert_ads(markup)."""
    return AdPlacementService(options).insert_ads(markup)
