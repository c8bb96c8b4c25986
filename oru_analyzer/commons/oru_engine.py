import datetime
from typing import Any, Dict, List, Optional, Sequence

from oru_analyzer.analysis.classifier import classify
from oru_analyzer.analysis.matching import find_candidates, select_metric
from oru_analyzer.analysis.ranking import rank_by_severity
from oru_analyzer.commons.errors import NoResultsError
from oru_analyzer.commons.logger import logger
from oru_analyzer.commons.types import Settings, load_settings
from oru_analyzer.parsers.models import (
    AbnormalResult,
    AnalysisReport,
    Catalog,
    DiagnosticMetric,
    ORUResult,
    ParsedMessage,
    PatientInfo,
)
from oru_analyzer.parsers.oru import parse_oru
from oru_analyzer.validation.validators import validate_oru_message_or_raise


def _iso(d: Optional[datetime.date]) -> str:
    return d.isoformat() if d else ""


class ORUEngine:
    """Facade: validates and parses messages, runs the matching pipeline and
    maps the report into the JSON payload handed to presentation layers.
    """

    def __init__(self, config_path_or_obj: Any = None):
        # Soportar rutas, dict ya cargado o Settings
        if isinstance(config_path_or_obj, Settings):
            self.cfg = config_path_or_obj
        else:
            self.cfg = load_settings(config_path_or_obj)
        self.header_marker = self.cfg.analysis.header_marker

    def parse(self, text: str) -> ParsedMessage:
        """Raises EmptyInputError / FormatError / NoResultsError."""
        header = validate_oru_message_or_raise(text, self.header_marker)
        parsed = parse_oru(text, header=header)
        if not any(o.is_numeric for o in parsed.observations):
            raise NoResultsError()
        return parsed

    def find_abnormal(
        self,
        observations: Sequence[ORUResult],
        metrics: Sequence[DiagnosticMetric],
        patient: PatientInfo,
        today: Optional[datetime.date] = None,
    ):
        """Returns (ranked abnormal results, number of observations with a catalog match)."""
        abnormal: List[AbnormalResult] = []
        matched = 0
        for obs in observations:
            candidates = find_candidates(obs, metrics)
            if not candidates:
                continue
            matched += 1
            metric = select_metric(candidates, patient, today)
            result = classify(obs, metric)
            if result is not None:
                abnormal.append(result)
        return rank_by_severity(abnormal), matched

    def analyze(
        self,
        parsed: ParsedMessage,
        catalog: Catalog,
        today: Optional[datetime.date] = None,
    ) -> AnalysisReport:
        abnormal, matched = self.find_abnormal(
            parsed.observations, catalog.metrics, parsed.patient, today
        )
        logger.info(
            f"Matched {matched} results with diagnostic metrics, "
            f"found {len(abnormal)} abnormal values"
        )
        return AnalysisReport(
            header=parsed.header,
            patient=parsed.patient,
            observations=parsed.observations,
            abnormal=abnormal,
            matched_count=matched,
            skipped=parsed.skipped,
            analyzed_at=datetime.datetime.now(),
        )

    @staticmethod
    def _result_payload(r: AbnormalResult) -> Dict:
        return {
            "code": r.code,
            "name": r.name,
            "value": r.value,
            "units": r.units,
            "referenceRange": r.reference_range,
            "date": _iso(r.date),
            "isLow": r.is_low,
            "isHigh": r.is_high,
            "risk": r.risk.value,
            "deviation": r.deviation,
            "metric": r.metric.model_dump(),
        }

    def to_payload(self, report: AnalysisReport) -> Dict:
        """Map the report into a JSON-ready dict. Adjust keys if the consumer differs."""
        p = report.patient
        return {
            "header": report.header.model_dump(),
            "patient": {
                "id": p.id,
                "name": p.name,
                "dateOfBirth": _iso(p.date_of_birth),
                "gender": p.gender,
            },
            "summary": {
                "total": len(report.observations),
                "matched": report.matched_count,
                "abnormal": len(report.abnormal),
                "highRisk": len(report.high_risk),
                "moderateRisk": len(report.moderate_risk),
                "skippedSegments": len(report.skipped),
            },
            "results": [self._result_payload(r) for r in report.abnormal],
        }
