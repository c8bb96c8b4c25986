# ===============================
# File: oru_analyzer/parsers/models.py
# ===============================
import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

from oru_analyzer.commons.constants import (
    ALIAS_SEP,
    DEFAULT_DATE_OF_BIRTH,
    DEFAULT_GENDER,
    DEFAULT_PATIENT_ID,
    DEFAULT_PATIENT_NAME,
)
from oru_analyzer.validation.validators import MessageHeader


@dataclass(frozen=True)
class PatientInfo:
    id: str = DEFAULT_PATIENT_ID
    name: str = DEFAULT_PATIENT_NAME
    date_of_birth: datetime.date = DEFAULT_DATE_OF_BIRTH
    gender: str = DEFAULT_GENDER  # M | F | U


@dataclass(frozen=True)
class ORUResult:
    code: str
    name: str
    value: Union[float, str]  # raw OBX-5 text when it is not a number
    units: str = ""
    reference_range: str = ""  # OBX-7, informativo
    date: Optional[datetime.date] = None  # OBX-14

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.value, float)


class DiagnosticMetric(BaseModel):
    """One catalog row. Values stay as the catalog wrote them."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    oru_sonic_codes: str
    diagnostic: str = ""
    diagnostic_groups: str = ""
    oru_sonic_units: str = ""
    units: str = ""
    min_age: str = ""
    max_age: str = ""
    gender: str = ""
    standard_lower: str = ""
    standard_higher: str = ""
    everlab_lower: str = ""
    everlab_higher: str = ""

    @field_validator("name", "oru_sonic_codes")
    @classmethod
    def _not_empty(cls, v: str):
        if not v or not v.strip():
            raise ValueError("required column is empty")
        return v

    @staticmethod
    def _aliases(raw: str) -> List[str]:
        return [a.strip() for a in raw.split(ALIAS_SEP) if a.strip()]

    @property
    def code_aliases(self) -> List[str]:
        return self._aliases(self.oru_sonic_codes)

    @property
    def unit_aliases(self) -> List[str]:
        return self._aliases(self.oru_sonic_units)


class RiskTier(str, Enum):
    HIGH = "high"  # fuera del rango estándar
    MODERATE = "moderate"  # only outside the everlab range


@dataclass(frozen=True)
class AbnormalResult:
    code: str
    name: str
    value: float
    units: str
    date: Optional[datetime.date]
    metric: DiagnosticMetric
    is_low: bool
    is_high: bool
    lower: float
    higher: float
    reference_range: str  # "<lower> - <higher>" of the bounds actually used
    risk: RiskTier

    @property
    def deviation(self) -> float:
        """Distance outside the range as a fraction of the crossed bound."""
        if self.is_low:
            return (self.lower - self.value) / (self.lower or 1)
        return (self.value - self.higher) / (self.higher or 1)


@dataclass(frozen=True)
class SkippedSegment:
    segment_type: str
    index: int  # position among the segments of that type
    segment: str
    reason: str


@dataclass
class ExtractionResult:
    results: List[ORUResult] = field(default_factory=list)
    skipped: List[SkippedSegment] = field(default_factory=list)


@dataclass
class ParsedMessage:
    header: MessageHeader
    patient: PatientInfo
    observations: List[ORUResult]
    skipped: List[SkippedSegment]
    segment_counts: Dict[str, int]


@dataclass(frozen=True)
class Catalog:
    metrics: Tuple[DiagnosticMetric, ...]
    columns: Tuple[str, ...]
    dropped_rows: int = 0

    def __len__(self) -> int:
        return len(self.metrics)


@dataclass
class AnalysisReport:
    header: MessageHeader
    patient: PatientInfo
    observations: List[ORUResult]
    abnormal: List[AbnormalResult]  # most severe first
    matched_count: int
    skipped: List[SkippedSegment]
    analyzed_at: datetime.datetime

    @property
    def high_risk(self) -> List[AbnormalResult]:
        return [r for r in self.abnormal if r.risk is RiskTier.HIGH]

    @property
    def moderate_risk(self) -> List[AbnormalResult]:
        return [r for r in self.abnormal if r.risk is RiskTier.MODERATE]
