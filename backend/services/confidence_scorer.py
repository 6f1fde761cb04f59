"""
Confidence Scoring for Room-by-Room Heat Loss Results
Layer 2 rolls field confidence up into a room score with risk flags,
Layer 3 rolls room scores up into a whole-house score weighted by heat loss
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np

from domain.core.clamps import round_score
from domain.core.models import RoomConfidence
from models.enums import ConfidenceColor, DataSourceType, RiskFlag, SurfaceClassification
from models.schemas import RawRoomHeatLoss, Room, Surface, coerce_model, coerce_models
from services.field_confidence import field_confidence
from utils.logging_utils import log_data_quality, stage_fields

logger = logging.getLogger(__name__)

GREEN_THRESHOLD = 80
AMBER_THRESHOLD = 50

# No glazing elements exist in the survey model yet, so glazing trust mirrors
# the external-wall score. Replace glazing_score() once glazing is its own surface type.
GLAZING_POLICY = "GLAZING_MIRRORS_EXTERNAL_WALLS"

ASSUMED_WALL_SOURCES = frozenset({DataSourceType.ASSUMED, DataSourceType.TABLE_LOOKUP, DataSourceType.UNKNOWN})


def confidence_to_color(score: float) -> ConfidenceColor:
    """Convert numeric confidence (0-100) to a traffic-light colour"""
    if score >= GREEN_THRESHOLD:
        return ConfidenceColor.GREEN
    if score >= AMBER_THRESHOLD:
        return ConfidenceColor.AMBER
    return ConfidenceColor.RED


def wall_construction_assumed(surface: Surface) -> bool:
    """Construction is assumed unless a trusted source supplied a U-value"""
    return surface.source_type in ASSUMED_WALL_SOURCES or not surface.has_u_value


def needs_urgent_attention(score: float) -> bool:
    return score < AMBER_THRESHOLD


def glazing_score(external_wall_score: float) -> float:
    """Glazing confidence under GLAZING_POLICY"""
    return external_wall_score


class ConfidenceScorer:
    """
    Weighted confidence rollups for heat-loss results.
    External walls and glazing dominate real heat-loss variance, so their
    provenance dominates trust in the room number.
    """

    COMPONENT_WEIGHTS = {
        "geometry": 0.20,
        "external_walls": 0.40,
        "glazing": 0.30,
        "other": 0.10,
    }

    LOW_CONFIDENCE_THRESHOLD = 50
    MISSING_EXTERNAL_WALL_SCORE = 20
    UNHEATED_ADJACENT_SCORE = 60
    DEFAULT_OTHER_SCORE = 80
    NEUTRAL_ROOM_SCORE = 50

    def score_room(
        self,
        room: Union[Room, Dict[str, Any]],
        surfaces: Iterable[Union[Surface, Dict[str, Any]]],
        extra_flags: Optional[Iterable[RiskFlag]] = None,
    ) -> RoomConfidence:
        """
        Calculate room confidence with weighted rollup.

        Args:
            room: The room being scored
            surfaces: Surfaces belonging to that room
            extra_flags: Caller-known risks (e.g. ACH_ASSUMED) merged into the
                flag set without changing the score

        Returns:
            RoomConfidence with score, colour and de-duplicated risk flags
        """
        room = coerce_model(Room, room)
        surfaces = coerce_models(Surface, surfaces)
        flags: List[RiskFlag] = []

        # 1. Geometry
        dimensions = room.dimensions
        geometry = field_confidence(dimensions.source_type, dimensions.measured_days_ago)
        if geometry < self.LOW_CONFIDENCE_THRESHOLD:
            flags.append(RiskFlag.GEOMETRY_ASSUMED)

        # 2. External walls
        external = [s for s in surfaces if s.surface_classification == SurfaceClassification.EXTERNAL]
        if external:
            external_walls = float(np.mean([
                field_confidence(s.source_type, s.measured_days_ago) for s in external
            ]))
            if any(wall_construction_assumed(s) for s in external):
                flags.append(RiskFlag.WALL_CONSTRUCTION_ASSUMED)
        else:
            external_walls = float(self.MISSING_EXTERNAL_WALL_SCORE)
            flags.append(RiskFlag.MISSING_EXTERNAL_WALLS)

        if any(s.surface_classification == SurfaceClassification.UNKNOWN for s in surfaces):
            flags.append(RiskFlag.WALL_CONSTRUCTION_ASSUMED)

        # 3. Glazing
        glazing = glazing_score(external_walls)
        if glazing < self.LOW_CONFIDENCE_THRESHOLD:
            flags.append(RiskFlag.GLAZING_ASSUMED)

        # 4. Other factors
        if any(s.surface_classification == SurfaceClassification.UNHEATED_ADJACENT for s in surfaces):
            flags.append(RiskFlag.UNHEATED_ADJACENT_MODEL)
            other = self.UNHEATED_ADJACENT_SCORE
        else:
            other = self.DEFAULT_OTHER_SCORE

        if extra_flags:
            flags.extend(RiskFlag(flag) for flag in extra_flags)

        components = {
            "geometry": float(geometry),
            "external_walls": external_walls,
            "glazing": glazing,
            "other": float(other),
        }
        weighted = np.average(
            [components[name] for name in self.COMPONENT_WEIGHTS],
            weights=list(self.COMPONENT_WEIGHTS.values()),
        )
        score = round_score(float(weighted))
        risk_flags = list(dict.fromkeys(flags))

        logger.debug(
            f"Room {room.room_id} confidence {score} "
            f"(geometry={geometry}, walls={external_walls:.1f}, glazing={glazing:.1f}, other={other}) "
            f"flags={[f.value for f in risk_flags]}",
            extra=stage_fields("room_confidence", room.room_id, score=score),
        )

        return RoomConfidence(
            score=score,
            color=confidence_to_color(score),
            risk_flags=risk_flags,
            components=components,
        )

    def score_result(
        self,
        raw_room_losses: Iterable[Union[RawRoomHeatLoss, Dict[str, Any]]],
        room_confidence_by_id: Mapping[str, int],
    ) -> int:
        """
        Whole-house confidence weighted by each room's share of total heat loss.
        Rooms absent from room_confidence_by_id count as neutral (50).
        """
        losses = coerce_models(RawRoomHeatLoss, raw_room_losses)
        if not losses:
            return 0

        weights = [loss.heat_loss_w for loss in losses]
        total = sum(weights)
        if total <= 0:
            logger.warning("Total heat loss is zero; whole-house confidence defined as 0")
            return 0

        scores = []
        for loss in losses:
            score = room_confidence_by_id.get(loss.room_id)
            scores.append(self.NEUTRAL_ROOM_SCORE if score is None else score)

        result = round_score(float(np.average(scores, weights=weights)))

        log_data_quality("heat_loss_result", result, [
            f"{loss.room_id}: {score}" for loss, score in zip(losses, scores)
            if score < self.LOW_CONFIDENCE_THRESHOLD
        ], logger)
        return result


# Singleton instance
confidence_scorer = ConfidenceScorer()


def room_confidence(
    room: Union[Room, Dict[str, Any]],
    surfaces: Iterable[Union[Surface, Dict[str, Any]]],
    extra_flags: Optional[Iterable[RiskFlag]] = None,
) -> RoomConfidence:
    return confidence_scorer.score_room(room, surfaces, extra_flags)


def result_confidence(
    raw_room_losses: Iterable[Union[RawRoomHeatLoss, Dict[str, Any]]],
    room_confidence_by_id: Mapping[str, int],
) -> int:
    return confidence_scorer.score_result(raw_room_losses, room_confidence_by_id)
