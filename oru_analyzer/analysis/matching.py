import datetime
from typing import List, Optional, Sequence

from oru_analyzer.commons.constants import DEFAULT_MAX_AGE, DEFAULT_MIN_AGE
from oru_analyzer.commons.logger import logger
from oru_analyzer.parsers.base import parse_int
from oru_analyzer.parsers.models import DiagnosticMetric, ORUResult, PatientInfo


def _code_match(result: ORUResult, aliases: List[str]) -> bool:
    if not result.code:
        return False
    # case-sensitive; the alias may be a fragment of the code/name or vice versa
    return any(a in result.code or a in result.name or result.code in a for a in aliases)


def _unit_match(result: ORUResult, aliases: List[str]) -> bool:
    units = result.units.lower()
    if not units:
        return False
    return any(u == units or u in units or units in u for u in (a.lower() for a in aliases))


def find_candidates(result: ORUResult, metrics: Sequence[DiagnosticMetric]) -> List[DiagnosticMetric]:
    """Catalog rows whose code and unit aliases both fit the observation, in catalog order."""
    if not result.is_numeric:
        return []
    return [
        m
        for m in metrics
        if _code_match(result, m.code_aliases) and _unit_match(result, m.unit_aliases)
    ]


def age_on(dob: datetime.date, today: Optional[datetime.date] = None) -> int:
    today = today or datetime.date.today()
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


def in_scope(metric: DiagnosticMetric, age: int, gender: str) -> bool:
    min_age = parse_int(metric.min_age)
    max_age = parse_int(metric.max_age)
    min_age = DEFAULT_MIN_AGE if min_age is None else min_age
    max_age = DEFAULT_MAX_AGE if max_age is None else max_age
    metric_gender = metric.gender.strip()
    return min_age <= age <= max_age and (not metric_gender or metric_gender == gender)


def select_metric(
    candidates: Sequence[DiagnosticMetric],
    patient: PatientInfo,
    today: Optional[datetime.date] = None,
) -> Optional[DiagnosticMetric]:
    """First candidate whose age/gender scope fits the patient.

    When none fits, the first candidate is returned anyway: a scope mismatch
    never drops the observation.
    """
    if not candidates:
        return None
    age = age_on(patient.date_of_birth, today)
    for metric in candidates:
        if in_scope(metric, age, patient.gender):
            return metric
    logger.debug(
        f"Ningún rango aplica a edad={age} sexo={patient.gender} para {candidates[0].name!r}; "
        "se usa el primero"
    )
    return candidates[0]
