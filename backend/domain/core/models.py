"""
Result models for the heat-loss confidence engine
Derived on every evaluation, never persisted by the engine
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.enums import (
    AdequacyStatus,
    ConfidenceColor,
    DataSourceType,
    RiskFlag,
    SurfaceClassification,
    UpgradeActionType,
    ValidationState,
)


@dataclass(frozen=True)
class RoomConfidence:
    """Layer 2: weighted room rollup"""
    score: int  # 0-100
    color: ConfidenceColor
    risk_flags: List[RiskFlag] = field(default_factory=list)
    components: Dict[str, float] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "color": self.color.value,
            "risk_flags": [flag.value for flag in self.risk_flags],
            "components": dict(self.components),
        }


@dataclass(frozen=True)
class AdequacyOutcome:
    """Emitter adequacy at one flow temperature"""
    flow_temp_c: int
    status: AdequacyStatus
    required_w: Optional[float] = None
    rated_w: Optional[float] = None
    shortfall_w: Optional[float] = None
    derived: bool = False  # rated output computed from emitter ratings

    def to_json(self) -> Dict[str, Any]:
        return {
            "flow_temp_c": self.flow_temp_c,
            "status": self.status.value,
            "required_w": self.required_w,
            "rated_w": self.rated_w,
            "shortfall_w": self.shortfall_w,
            "derived": self.derived,
        }


@dataclass(frozen=True)
class RoomSummary:
    """Room card for the dashboard grid"""
    room_id: str
    room_name: str
    heat_loss_w: float
    confidence_score: int
    confidence_color: ConfidenceColor
    risk_flags: List[RiskFlag] = field(default_factory=list)
    adequacy: Dict[int, AdequacyOutcome] = field(default_factory=dict)
    room_found: bool = True

    def adequacy_at(self, flow_temp_c: int) -> AdequacyStatus:
        outcome = self.adequacy.get(flow_temp_c)
        return outcome.status if outcome else AdequacyStatus.UNKNOWN

    def to_json(self) -> Dict[str, Any]:
        return {
            "room_id": self.room_id,
            "room_name": self.room_name,
            "heat_loss_w": round(self.heat_loss_w),
            "confidence_score": self.confidence_score,
            "confidence_color": self.confidence_color.value,
            "risk_flags": [flag.value for flag in self.risk_flags],
            "adequacy": {str(temp): outcome.to_json() for temp, outcome in self.adequacy.items()},
            "room_found": self.room_found,
        }


@dataclass(frozen=True)
class UpgradeAction:
    """Concrete, time-estimated step that resolves one or more risk flags"""
    action_id: str
    type: UpgradeActionType
    label: str
    reason: str
    estimated_time_sec: int
    target_risk_flags: List[RiskFlag] = field(default_factory=list)
    priority: int = 99  # 1 = most urgent
    surface_ids: List[str] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "action_id": self.action_id,
            "type": self.type.value,
            "label": self.label,
            "reason": self.reason,
            "estimated_time_sec": self.estimated_time_sec,
            "target_risk_flags": [flag.value for flag in self.target_risk_flags],
            "priority": self.priority,
            "surface_ids": list(self.surface_ids),
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of the readiness gate"""
    state: ValidationState
    rule: str
    message: str
    user_action: Optional[str] = None
    room_ids: List[str] = field(default_factory=list)

    @property
    def can_present(self) -> bool:
        return self.state == ValidationState.READY

    def to_json(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "rule": self.rule,
            "message": self.message,
            "user_action": self.user_action,
            "room_ids": list(self.room_ids),
            "can_present": self.can_present,
        }


@dataclass(frozen=True)
class SurfaceRow:
    """Surface detail line for the room detail view"""
    surface_id: str
    classification: SurfaceClassification
    source_badge: DataSourceType
    source_label: str
    confidence_score: int
    u_value: Optional[float] = None
    area_m2: Optional[float] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "surface_id": self.surface_id,
            "classification": self.classification.value,
            "source_badge": self.source_badge.value,
            "source_label": self.source_label,
            "confidence_score": self.confidence_score,
            "u_value": self.u_value,
            "area_m2": self.area_m2,
        }


@dataclass(frozen=True)
class HeatLossAssessment:
    """Everything the presentation layer reads after one evaluation"""
    room_summaries: List[RoomSummary]
    whole_house_confidence: int
    whole_house_color: ConfidenceColor
    validation: ValidationResult
    upgrade_actions: Dict[str, List[UpgradeAction]] = field(default_factory=dict)
    next_best_actions: Dict[str, str] = field(default_factory=dict)
    whole_house_heat_loss_w: float = 0.0
    flow_temps: List[int] = field(default_factory=list)

    @property
    def validation_state(self) -> ValidationState:
        return self.validation.state

    @property
    def whole_house_heat_loss_kw(self) -> float:
        return round(self.whole_house_heat_loss_w / 1000, 2)

    def get_room(self, room_id: str) -> Optional[RoomSummary]:
        for summary in self.room_summaries:
            if summary.room_id == room_id:
                return summary
        return None

    def to_json(self) -> Dict[str, Any]:
        return {
            "whole_house_heat_loss_w": round(self.whole_house_heat_loss_w),
            "whole_house_heat_loss_kw": self.whole_house_heat_loss_kw,
            "whole_house_confidence": self.whole_house_confidence,
            "whole_house_color": self.whole_house_color.value,
            "validation": self.validation.to_json(),
            "flow_temps": list(self.flow_temps),
            "rooms": [
                {
                    **summary.to_json(),
                    "upgrade_actions": [a.to_json() for a in self.upgrade_actions.get(summary.room_id, [])],
                    "next_best_action": self.next_best_actions.get(summary.room_id),
                }
                for summary in self.room_summaries
            ],
        }
