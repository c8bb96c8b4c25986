from typing import Iterable, List

from oru_analyzer.parsers.models import AbnormalResult


def rank_by_severity(results: Iterable[AbnormalResult]) -> List[AbnormalResult]:
    """Most deviating first; equal deviations keep their input order."""
    return sorted(results, key=lambda r: r.deviation, reverse=True)
