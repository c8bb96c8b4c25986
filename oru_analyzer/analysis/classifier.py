from typing import Optional, Tuple

from oru_analyzer.commons.constants import UNCONFIGURED_BOUND
from oru_analyzer.parsers.base import parse_decimal
from oru_analyzer.parsers.models import AbnormalResult, DiagnosticMetric, ORUResult, RiskTier


def _first_bound(*raw: str) -> float:
    for r in raw:
        v = parse_decimal(r)
        if v is not None:
            return v
    return UNCONFIGURED_BOUND


def effective_bounds(metric: DiagnosticMetric) -> Tuple[float, float]:
    """(lower, higher), preferring the everlab pair over the standard one."""
    return (
        _first_bound(metric.everlab_lower, metric.standard_lower),
        _first_bound(metric.everlab_higher, metric.standard_higher),
    )


def format_bound(value: float) -> str:
    # 5.0 -> "5", 5.5 -> "5.5"
    return str(int(value)) if float(value).is_integer() else repr(value)


def risk_tier(value: float, is_low: bool, metric: DiagnosticMetric) -> RiskTier:
    """HIGH when the value is also outside the standard range, else MODERATE."""
    if is_low:
        bound = parse_decimal(metric.standard_lower)
        outside = bound is not None and value < bound
    else:
        bound = parse_decimal(metric.standard_higher)
        outside = bound is not None and value > bound
    return RiskTier.HIGH if outside else RiskTier.MODERATE


def classify(result: ORUResult, metric: DiagnosticMetric) -> Optional[AbnormalResult]:
    """AbnormalResult when the value is outside the effective bounds, else None.

    Rows whose bounds both resolve to 0 have no range configured and never
    classify anything.
    """
    if not result.is_numeric:
        return None
    lower, higher = effective_bounds(metric)
    if lower == UNCONFIGURED_BOUND and higher == UNCONFIGURED_BOUND:
        return None

    value = result.value
    is_low = value < lower
    is_high = not is_low and value > higher
    if not (is_low or is_high):
        return None

    return AbnormalResult(
        code=result.code,
        name=result.name,
        value=value,
        units=result.units,
        date=result.date,
        metric=metric,
        is_low=is_low,
        is_high=is_high,
        lower=lower,
        higher=higher,
        reference_range=f"{format_bound(lower)} - {format_bound(higher)}",
        risk=risk_tier(value, is_low, metric),
    )
