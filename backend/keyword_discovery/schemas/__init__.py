"""Pydantic schemas exchanged with the surrounding application."""

from keyword_discovery.schemas.keyword_discovery import (
    BrandTermSchema,
    DiscoveryStatsResponse,
    ItemFailureResponse,
    KeywordCandidateResponse,
    KeywordDiscoveryRequest,
    KeywordDiscoveryResponse,
)

__all__ = [
    "BrandTermSchema",
    "DiscoveryStatsResponse",
    "ItemFailureResponse",
    "KeywordCandidateResponse",
    "KeywordDiscoveryRequest",
    "KeywordDiscoveryResponse",
]
