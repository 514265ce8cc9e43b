"""Adapters for the external content generation service."""

from .client import ContentGenerator, GenerationFailure, GenerationRequest
from .guides import GUIDES, Guide, GuideResult, order_guides, select_guides

__all__ = [
    "ContentGenerator",
    "GenerationFailure",
    "GenerationRequest",
    "GUIDES",
    "Guide",
    "GuideResult",
    "order_guides",
    "select_guides",
]
