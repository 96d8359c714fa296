# ============================================
# file: src/article_layout/model.py
# ============================================
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_WORDS_PER_AD = 500
DEFAULT_MIN_WORDS = 250
DEFAULT_MIN_ADS = 1
DEFAULT_MAX_ADS = 5


class ArticleBlock(BaseModel):
    """
    A single top-level block of article markup (paragraph, heading, list, image, table, ...).
    """
    tag: str
    html: str
    word_count: int = 0
    allows_ad_after: bool = True


class ArticleDocument(BaseModel):
    """Ordered list of top-level blocks parsed from one article body."""
    blocks: List[ArticleBlock] = Field(default_factory=list)

    @property
    def total_words(self) -> int:
        return sum(block.word_count for block in self.blocks)

    @property
    def is_empty(self) -> bool:
        return not self.blocks


class ContentBlock(BaseModel):
    type: Literal["html"] = "html"
    html: str = ""


class AdMarker(BaseModel):
    type: Literal["ad"] = "ad"


ArticleSegment = Union[ContentBlock, AdMarker]


class AdPlacementOverrides(BaseModel):
    """Per-request or per-command overrides; unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid")

    words_per_ad: Optional[int] = None
    min_words: Optional[int] = None
    min_ads: Optional[int] = None
    max_ads: Optional[int] = None


class AdPlacementOptions(BaseModel):
    """
    Tunables for in-article ad placement.

    words_per_ad: target word distance between two ads.
    min_words: articles shorter than this get no ads at all.
    min_ads / max_ads: hard floor and ceiling on the number of ads.
    """
    words_per_ad: int = Field(default=DEFAULT_WORDS_PER_AD, ge=1)
    min_words: int = Field(default=DEFAULT_MIN_WORDS, ge=0)
    min_ads: int = Field(default=DEFAULT_MIN_ADS, ge=0)
    max_ads: int = Field(default=DEFAULT_MAX_ADS, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "AdPlacementOptions":
        if self.min_ads > self.max_ads:
            raise ValueError(f"min_ads ({self.min_ads}) cannot exceed max_ads ({self.max_ads})")
        return self

    @classmethod
    def from_config(
            cls,
            section: Optional[Dict[str, Any]] = None,
            overrides: Optional[Dict[str, Any]] = None,
    ) -> "AdPlacementOptions":
        """
        Builds options from an 'ad_placement' config section, with explicit overrides on top.
        Raises pydantic.ValidationError for unknown override keys or out-of-range values.
        """
        values: Dict[str, Any] = {}
        if section:
            values.update({k: v for k, v in section.items() if k in cls.model_fields and v is not None})
        if overrides:
            checked = AdPlacementOverrides.model_validate(overrides)
            values.update(checked.model_dump(exclude_none=True))
        return cls(**values)
