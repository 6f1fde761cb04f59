"""
Enums for heat-loss confidence models to ensure type safety and consistency
"""

from enum import Enum


class DataSourceType(str, Enum):
    """How a measured or assumed value was captured"""
    LIDAR = 'LIDAR'
    THERMAL_CAMERA = 'THERMAL_CAMERA'
    BOROSCOPE = 'BOROSCOPE'
    MANUAL = 'MANUAL'
    SATELLITE = 'SATELLITE'
    TABLE_LOOKUP = 'TABLE_LOOKUP'
    ASSUMED = 'ASSUMED'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def _missing_(cls, value):
        # Unrecognised provenance tokens get the lowest-trust treatment
        if isinstance(value, str):
            return cls._value2member_map_.get(value.strip().upper(), cls.UNKNOWN)
        return cls.UNKNOWN

    @property
    def label(self) -> str:
        return SOURCE_BADGE_LABELS[self]


class SurfaceClassification(str, Enum):
    """What sits on the other side of a surface"""
    EXTERNAL = 'EXTERNAL'
    PARTY_WALL = 'PARTY_WALL'
    UNHEATED_ADJACENT = 'UNHEATED_ADJACENT'
    INTERNAL = 'INTERNAL'
    GROUND_FLOOR = 'GROUND_FLOOR'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls._value2member_map_.get(value.strip().upper(), cls.UNKNOWN)
        return cls.UNKNOWN


class ConfidenceTier(str, Enum):
    """Coarse confidence tier reported by the physics audit trail"""
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls._value2member_map_.get(value.strip().lower(), cls.LOW)
        return cls.LOW


class ConfidenceColor(str, Enum):
    GREEN = 'green'
    AMBER = 'amber'
    RED = 'red'


class RiskFlag(str, Enum):
    """Named reasons a heat-loss result should be treated with caution"""
    GEOMETRY_ASSUMED = 'GEOMETRY_ASSUMED'
    WALL_CONSTRUCTION_ASSUMED = 'WALL_CONSTRUCTION_ASSUMED'
    GLAZING_ASSUMED = 'GLAZING_ASSUMED'
    UNHEATED_ADJACENT_MODEL = 'UNHEATED_ADJACENT_MODEL'
    ACH_ASSUMED = 'ACH_ASSUMED'
    MISSING_EXTERNAL_WALLS = 'MISSING_EXTERNAL_WALLS'

    @property
    def label(self) -> str:
        return RISK_FLAG_LABELS[self]


class ValidationState(str, Enum):
    """Whether a heat-loss result set is fit to present as final"""
    INCOMPLETE = 'INCOMPLETE'
    PROVISIONAL = 'PROVISIONAL'
    READY = 'READY'


class AdequacyStatus(str, Enum):
    """Emitter sufficiency at a single design flow temperature"""
    OK = 'ok'
    UPSIZE = 'upsize'
    MAJOR_UPSIZE = 'major_upsize'
    UNKNOWN = 'unknown'


class UpgradeActionType(str, Enum):
    """Surveyor actions that raise a room's confidence"""
    SCAN_GEOMETRY = 'scan_geometry'
    CONFIRM_WALL = 'confirm_wall'
    CONFIRM_INSULATION = 'confirm_insulation'
    CONFIRM_GLAZING = 'confirm_glazing'
    SET_UNHEATED_TEMP = 'set_unheated_temp'
    SET_ACH_METHOD = 'set_ach_method'
    ATTACH_PHOTO = 'attach_photo'


class EmitterType(str, Enum):
    RADIATOR = 'radiator'
    UNDERFLOOR = 'underfloor'
    FAN_CONVECTOR = 'fan_convector'
    OTHER = 'other'


SOURCE_BADGE_LABELS = {
    DataSourceType.LIDAR: 'LiDAR',
    DataSourceType.THERMAL_CAMERA: 'Thermal',
    DataSourceType.BOROSCOPE: 'Borescope',
    DataSourceType.MANUAL: 'Manual',
    DataSourceType.SATELLITE: 'Satellite',
    DataSourceType.TABLE_LOOKUP: 'Table',
    DataSourceType.ASSUMED: 'Assumed',
    DataSourceType.UNKNOWN: 'Unknown',
}

RISK_FLAG_LABELS = {
    RiskFlag.GEOMETRY_ASSUMED: 'Room geometry assumed',
    RiskFlag.WALL_CONSTRUCTION_ASSUMED: 'Wall construction or U-value assumed',
    RiskFlag.GLAZING_ASSUMED: 'Glazing type or U-value assumed',
    RiskFlag.UNHEATED_ADJACENT_MODEL: 'Unheated adjacent space temperature model used',
    RiskFlag.ACH_ASSUMED: 'Air changes per hour assumed from age band',
    RiskFlag.MISSING_EXTERNAL_WALLS: 'Missing external wall data',
}
