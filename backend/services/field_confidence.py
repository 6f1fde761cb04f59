"""
Field Confidence - Layer 1 of the confidence model
Scores a single measured or assumed value by how it was captured and how old it is
"""

import logging
from typing import Optional, Union

from domain.core.clamps import round_score
from models.enums import DataSourceType

logger = logging.getLogger(__name__)

# Base trust by provenance tier (instrument > manual > remote > table > assumption)
SOURCE_BASE_SCORES = {
    DataSourceType.LIDAR: 95,
    DataSourceType.THERMAL_CAMERA: 95,
    DataSourceType.BOROSCOPE: 95,
    DataSourceType.MANUAL: 70,
    DataSourceType.SATELLITE: 50,
    DataSourceType.TABLE_LOOKUP: 40,
    DataSourceType.ASSUMED: 20,
}
LOWEST_TRUST_SCORE = 20

RECENCY_GRACE_DAYS = 365
RECENCY_PENALTY_PER_YEAR = 0.10
MAX_RECENCY_DEGRADATION = 0.50


def base_score(source_type: Union[DataSourceType, str, None]) -> int:
    """Un-degraded score for a provenance tier; unknown tiers get the lowest trust"""
    if source_type is None:
        return LOWEST_TRUST_SCORE
    source = DataSourceType(source_type)
    return SOURCE_BASE_SCORES.get(source, LOWEST_TRUST_SCORE)


def recency_multiplier(recency_days: Optional[float]) -> float:
    """Degradation factor for stale readings: 10% per year past the first, never below 0.5"""
    if recency_days is None or recency_days <= RECENCY_GRACE_DAYS:
        return 1.0
    years_over = (recency_days - RECENCY_GRACE_DAYS) / RECENCY_GRACE_DAYS
    penalty = min(MAX_RECENCY_DEGRADATION, years_over * RECENCY_PENALTY_PER_YEAR)
    return 1.0 - penalty


def field_confidence(
    source_type: Union[DataSourceType, str, None],
    recency_days: Optional[float] = None,
) -> int:
    """
    Calculate confidence for a single field/input.

    Args:
        source_type: How the value was captured
        recency_days: Days since the value was captured (optional)

    Returns:
        Integer confidence score 0-100
    """
    score = base_score(source_type) * recency_multiplier(recency_days)
    return round_score(score)


def source_badge_label(source_type: Union[DataSourceType, str, None]) -> str:
    if source_type is None:
        return DataSourceType.UNKNOWN.label
    return DataSourceType(source_type).label
