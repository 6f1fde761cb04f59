"""
Pydantic schemas for heat-loss survey inputs and the physics engine response
Everything here is consumed by the confidence engine, never produced by it
"""

import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from models.enums import ConfidenceTier, DataSourceType, EmitterType, SurfaceClassification
from services.error_types import DataQualityError, log_error_with_context

ModelT = TypeVar('ModelT', bound=BaseModel)

# Required emitter output is the room loss plus this margin
DESIGN_MARGIN = 1.10

FLOW_TEMP_KEY = re.compile(r'(\d+)')
EMITTER_OUTPUT_KEY = re.compile(r'^(current_output|adequate)_at_mwt_(\d+)$')


class RoomDimensions(BaseModel):
    """Room geometry plus how it was captured"""
    model_config = ConfigDict(frozen=True)

    floor_area_m2: float = Field(..., description="Net floor area in m²")
    volume_m3: float = Field(..., description="Room volume in m³")
    ceiling_height_m: Optional[float] = Field(None, description="Ceiling height in m")
    length_m: Optional[float] = None
    width_m: Optional[float] = None
    source_type: DataSourceType = Field(DataSourceType.ASSUMED, description="Geometry provenance")
    measured_days_ago: Optional[float] = Field(None, ge=0, description="Age of the geometry capture")

    @field_validator('source_type', mode='before')
    @classmethod
    def coerce_source_type(cls, v):
        if v is None:
            return DataSourceType.ASSUMED
        return DataSourceType(v)


class Room(BaseModel):
    """Single surveyed room"""
    model_config = ConfigDict(frozen=True)

    room_id: str = Field(..., description="Unique room identifier")
    name: str = Field("", description="Display name, e.g. 'Living Room'")
    floor_level: Optional[int] = None
    dimensions: RoomDimensions
    design_temp_c: float = Field(21.0, description="Desired internal temperature")

    @property
    def display_name(self) -> str:
        return self.name or self.room_id


class Surface(BaseModel):
    """Wall (or other envelope surface) belonging to a room"""
    model_config = ConfigDict(frozen=True)

    surface_id: str
    room_id: str
    orientation: Optional[str] = Field(None, description="N, NE, E, ... or 'internal'")
    area_m2: float = Field(0.0, ge=0)
    construction_type: Optional[str] = Field(None, description="solid, cavity_unfilled, cavity_filled, timber_frame, other")
    u_value_measured: Optional[float] = Field(None, description="W/m²K from thermal imaging")
    u_value_calculated: Optional[float] = Field(None, description="W/m²K from construction tables")
    surface_classification: SurfaceClassification = SurfaceClassification.UNKNOWN
    source_type: DataSourceType = DataSourceType.ASSUMED
    confidence_score: Optional[ConfidenceTier] = None
    measured_days_ago: Optional[float] = Field(None, ge=0)

    @field_validator('surface_classification', mode='before')
    @classmethod
    def coerce_classification(cls, v):
        if v is None:
            return SurfaceClassification.UNKNOWN
        return SurfaceClassification(v)

    @field_validator('source_type', mode='before')
    @classmethod
    def coerce_source_type(cls, v):
        if v is None:
            return DataSourceType.ASSUMED
        return DataSourceType(v)

    @field_validator('confidence_score', mode='before')
    @classmethod
    def coerce_confidence_tier(cls, v):
        if v is None:
            return None
        return ConfidenceTier(v)

    @property
    def u_value(self) -> Optional[float]:
        """Authoritative U-value: a measured value wins over a table value"""
        if self.u_value_measured is not None:
            return self.u_value_measured
        return self.u_value_calculated

    @property
    def has_u_value(self) -> bool:
        return bool(self.u_value_measured or self.u_value_calculated)


class Emitter(BaseModel):
    """Radiator or other emitter installed in a room"""
    model_config = ConfigDict(frozen=True)

    emitter_id: str
    room_id: str
    type: EmitterType = EmitterType.RADIATOR
    rated_output_w: Optional[float] = Field(None, ge=0, description="Catalogue output at the reference ΔT")
    rated_delta_t_k: float = Field(50.0, gt=0, description="Reference ΔT for the rated output")


class SetpointAdequacy(BaseModel):
    """Physics engine adequacy verdict at one design flow temperature"""
    model_config = ConfigDict(frozen=True)

    flow_temp_c: int
    adequate: Optional[bool] = None
    required_w: Optional[float] = None
    rated_w: Optional[float] = None
    shortfall_w: Optional[float] = None


def _emitter_adequacy_entries(records) -> List[Dict[str, Any]]:
    """
    Convert per-emitter records ({'room_heat_loss_w': ..., 'current_output_at_mwt_45': ...,
    'adequate_at_mwt_45': ...}) into setpoint entries. Outputs of several
    emitters in one room are summed; required is the room loss plus the design margin.
    """
    if isinstance(records, dict):
        records = [records]

    by_temp: Dict[int, Dict[str, Any]] = {}
    required = None
    for record in records:
        if record.get('room_heat_loss_w') is not None:
            required = round(float(record['room_heat_loss_w']) * DESIGN_MARGIN, 1)
        for key, value in record.items():
            match = EMITTER_OUTPUT_KEY.match(str(key))
            if match is None or value is None:
                continue
            flow_temp = int(match.group(2))
            entry = by_temp.setdefault(flow_temp, {'flow_temp_c': flow_temp})
            if match.group(1) == 'current_output':
                entry['rated_w'] = entry.get('rated_w', 0.0) + float(value)
            else:
                entry['adequate'] = entry.get('adequate', True) and bool(value)

    for entry in by_temp.values():
        entry['required_w'] = required
    return [by_temp[temp] for temp in sorted(by_temp)]


class RawRoomHeatLoss(BaseModel):
    """Per-room output of the physics engine"""
    model_config = ConfigDict(frozen=True)

    room_id: str
    fabric_loss_w: float = 0.0
    ventilation_loss_w: float = 0.0
    thermal_bridging_w: float = 0.0
    total_loss_w: Optional[float] = None
    adequacy: List[SetpointAdequacy] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def adopt_emitter_adequacy(cls, data):
        """Fill `adequacy` from a per-emitter `emitter_adequacy` record when no setpoints are given"""
        if isinstance(data, dict) and not data.get('adequacy') and data.get('emitter_adequacy'):
            data = {**data, 'adequacy': _emitter_adequacy_entries(data['emitter_adequacy'])}
        return data

    @field_validator('adequacy', mode='before')
    @classmethod
    def expand_adequacy_mapping(cls, v, info: ValidationInfo):
        """Accept {'at_45c': {...}, 'adequacy_at_55c': None} as well as a list"""
        if v is None:
            return []
        if not isinstance(v, dict):
            return v

        entries = []
        for key, entry in v.items():
            if entry is None:
                continue
            match = FLOW_TEMP_KEY.search(str(key))
            if match is None:
                log_error_with_context(
                    DataQualityError(f"Ignoring adequacy entry with no flow temperature in key '{key}'"),
                    {'room_id': info.data.get('room_id'), 'stage': 'parse_adequacy'},
                )
                continue
            entries.append({**entry, 'flow_temp_c': int(match.group(1))})
        return entries

    @property
    def heat_loss_w(self) -> float:
        """Total loss, falling back to the sum of its parts"""
        if self.total_loss_w is not None:
            return self.total_loss_w
        return self.fabric_loss_w + self.ventilation_loss_w + self.thermal_bridging_w

    def adequacy_at(self, flow_temp_c: int) -> Optional[SetpointAdequacy]:
        for entry in self.adequacy:
            if entry.flow_temp_c == flow_temp_c:
                return entry
        return None


class DesignConditions(BaseModel):
    model_config = ConfigDict(frozen=True)

    design_external_temp_c: float = -3.0
    desired_internal_temp_c: float = 21.0


class AuditTrailEntry(BaseModel):
    """Source-transparency record emitted by the physics engine"""
    model_config = ConfigDict(frozen=True)

    field_name: str
    value: Union[float, int, str, None] = None
    source_type: DataSourceType = DataSourceType.ASSUMED
    confidence_score: ConfidenceTier = ConfidenceTier.LOW
    timestamp: Optional[Union[datetime, str]] = None
    notes: Optional[str] = None

    @field_validator('source_type', mode='before')
    @classmethod
    def coerce_source_type(cls, v):
        return DataSourceType(v) if v is not None else DataSourceType.ASSUMED

    @field_validator('confidence_score', mode='before')
    @classmethod
    def coerce_confidence_tier(cls, v):
        return ConfidenceTier(v) if v is not None else ConfidenceTier.LOW


class HeatLossCalculation(BaseModel):
    """Whole response of the physics engine for one survey"""
    model_config = ConfigDict(frozen=True)

    room_heat_losses: List[RawRoomHeatLoss] = Field(default_factory=list)
    whole_house_heat_loss_w: Optional[float] = None
    design_conditions: DesignConditions = Field(default_factory=DesignConditions)
    audit_trail: List[AuditTrailEntry] = Field(default_factory=list)


class HeatLossSurvey(BaseModel):
    """Survey document accepted by the command line entry point"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    rooms: List[Room] = Field(default_factory=list)
    surfaces: List[Surface] = Field(default_factory=list, alias='walls')
    emitters: List[Emitter] = Field(default_factory=list)
    calculation: HeatLossCalculation = Field(default_factory=HeatLossCalculation)
    flow_temps: Optional[List[int]] = None


def coerce_models(model: Type[ModelT], items: Optional[Iterable[Union[ModelT, Dict[str, Any]]]]) -> List[ModelT]:
    """Validate plain dicts into `model`, passing existing instances through"""
    if not items:
        return []
    return [item if isinstance(item, model) else model.model_validate(item) for item in items]


def coerce_model(model: Type[ModelT], item: Union[ModelT, Dict[str, Any], None]) -> Optional[ModelT]:
    if item is None or isinstance(item, model):
        return item
    return model.model_validate(item)
