import re
from typing import List, Optional, Union

from oru_analyzer.commons.constants import (
    COMPARATOR_OFFSET,
    DEFAULT_DATE_OF_BIRTH,
    DEFAULT_GENDER,
    DEFAULT_PATIENT_ID,
    DEFAULT_PATIENT_NAME,
    GENDERS,
    NUMERIC_OBS_TYPES,
    OBX,
    PID,
    UNKNOWN_TEST_NAME,
)
from oru_analyzer.commons.errors import SegmentParseError
from oru_analyzer.commons.logger import logger
from oru_analyzer.validation.validators import MessageHeader, parse_header_from_text

from .base import (
    _field,
    _first_comp,
    _split_comp,
    _split_fields,
    group_segments,
    parse_decimal,
    parse_hl7_date,
)
from .models import ExtractionResult, ORUResult, ParsedMessage, PatientInfo, SkippedSegment

# OBX-5 que se acepta aunque OBX-2 no sea NM/SN: "8", "5.25", "<3", ">90"
_NUMERIC_VALUE = re.compile(r"^[<>]?\d+(\.\d+)?$")


def extract_patient_info(pid: Optional[str]) -> PatientInfo:
    """Best-effort patient data from the first PID segment.

    PID|1||394255555^^^NATA&2133&N||SMITH^JOHN^^^DR||19700101|M|||
    A missing segment or empty field falls back to the defaults; nothing here
    ever blocks the analysis.
    """
    if not pid:
        return PatientInfo()

    p = _split_fields(pid)
    pid_id = _first_comp(_field(p, 3)) or DEFAULT_PATIENT_ID

    # apellido^nombre -> "nombre apellido"
    comp = _split_comp(_field(p, 5))
    last = comp[0] if len(comp) > 0 else ""
    first = comp[1] if len(comp) > 1 else ""
    name = f"{first} {last}".strip() or DEFAULT_PATIENT_NAME

    raw_dob = _field(p, 7).strip()
    dob = parse_hl7_date(raw_dob)
    if dob is None:
        if raw_dob:
            logger.warning(f"PID-7 inválido {raw_dob!r}; se usa {DEFAULT_DATE_OF_BIRTH}")
        dob = DEFAULT_DATE_OF_BIRTH

    gender = _field(p, 8).strip().upper() or DEFAULT_GENDER
    if gender not in GENDERS:
        gender = DEFAULT_GENDER

    return PatientInfo(id=pid_id, name=name, date_of_birth=dob, gender=gender)


def parse_observation_value(raw: str) -> Union[float, str]:
    """OBX-5 -> float when possible, else the original text.

    "<3" -> 2.9 and ">90" -> 90.1 so an open bound still compares as out of range.
    """
    if raw.startswith(("<", ">")):
        bound = parse_decimal(raw[1:])
        if bound is not None:
            return bound - COMPARATOR_OFFSET if raw[0] == "<" else bound + COMPARATOR_OFFSET
    value = parse_decimal(raw)
    return raw if value is None else value


def _is_analyzable(obs_type: str, raw_value: str) -> bool:
    if not raw_value.strip():
        return False
    return obs_type in NUMERIC_OBS_TYPES or bool(_NUMERIC_VALUE.match(raw_value))


def parse_obx(segment: str) -> Optional[ORUResult]:
    """One OBX segment -> ORUResult, or None when it carries no usable value.

    OBX|1|NM|14798-3^S Iron:^LN||8|umol/L^umol/L|5-30||||F|||202306101318
    """
    try:
        o = _split_fields(segment)
        obs_type = _field(o, 2)
        raw_value = _field(o, 5)
        if not _is_analyzable(obs_type, raw_value):
            return None

        # OBX-3: code^text
        comp = _split_comp(_field(o, 3))
        code = comp[0] if comp else ""
        name = (comp[1] if len(comp) > 1 else "") or code or UNKNOWN_TEST_NAME

        return ORUResult(
            code=code,
            name=name,
            value=parse_observation_value(raw_value),
            units=_first_comp(_field(o, 6)),
            reference_range=_field(o, 7),
            date=parse_hl7_date(_field(o, 14)),
        )
    except Exception as e:
        raise SegmentParseError(segment, str(e)) from e


def extract_observations(segments: List[str]) -> ExtractionResult:
    """Parse every OBX segment, collecting failures instead of raising.

    A broken segment is recorded in ``skipped`` and the rest of the batch
    goes on untouched.
    """
    out = ExtractionResult()
    for idx, seg in enumerate(segments):
        try:
            result = parse_obx(seg)
        except SegmentParseError as e:
            logger.warning(f"OBX #{idx} descartado: {e.reason} | {seg!r}")
            out.skipped.append(
                SkippedSegment(segment_type=OBX, index=idx, segment=seg, reason=e.reason)
            )
            continue
        if result is None:
            logger.debug(f"OBX #{idx} sin valor numérico, ignorado")
            continue
        out.results.append(result)
    return out


def parse_oru(text: str, header: Optional[MessageHeader] = None) -> ParsedMessage:
    """Parse a whole ORU message: patient plus observations.

    The caller validates the header marker first (see validators).
    """
    segments = group_segments(text)
    pid_list = segments.get(PID, [])
    obx_list = segments.get(OBX, [])

    patient = extract_patient_info(pid_list[0] if pid_list else None)
    extraction = extract_observations(obx_list)
    logger.info(
        f"Extracted {len(extraction.results)} results from {len(obx_list)} OBX segments"
    )

    return ParsedMessage(
        header=header or parse_header_from_text(text) or MessageHeader(),
        patient=patient,
        observations=extraction.results,
        skipped=extraction.skipped,
        segment_counts={k: len(v) for k, v in segments.items()},
    )
