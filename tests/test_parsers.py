import datetime

import pytest

from oru_analyzer.commons.constants import (
    DEFAULT_DATE_OF_BIRTH,
    DEFAULT_GENDER,
    DEFAULT_PATIENT_ID,
    DEFAULT_PATIENT_NAME,
    UNKNOWN_TEST_NAME,
)
from oru_analyzer.parsers.base import group_segments, parse_decimal, parse_hl7_date
from oru_analyzer.parsers.oru import (
    extract_observations,
    extract_patient_info,
    parse_observation_value,
    parse_oru,
)
from tests.samples import ORU_MESSAGE

PID_FULL = "PID|1||394255555^^^NATA&2133&N||SMITH^JOHN^^^DR||19700101|M|||"


def test_group_segments_keeps_order_and_drops_blank_lines():
    groups = group_segments("MSH|a\r\r  \rOBX|1\rZZZ|x\rOBX|2\r")
    assert list(groups) == ["MSH", "OBX", "ZZZ"]
    assert groups["OBX"] == ["OBX|1", "OBX|2"]


def test_group_segments_accepts_lf_and_crlf():
    groups = group_segments("MSH|a\r\nPID|b\nOBX|c")
    assert set(groups) == {"MSH", "PID", "OBX"}


def test_patient_info_full():
    p = extract_patient_info(PID_FULL)
    assert p.id == "394255555"
    assert p.name == "JOHN SMITH"
    assert p.date_of_birth == datetime.date(1970, 1, 1)
    assert p.gender == "M"


def test_patient_info_missing_segment_uses_defaults():
    p = extract_patient_info(None)
    assert p.id == DEFAULT_PATIENT_ID
    assert p.name == DEFAULT_PATIENT_NAME
    assert p.date_of_birth == DEFAULT_DATE_OF_BIRTH
    assert p.gender == DEFAULT_GENDER


def test_patient_info_empty_fields_use_defaults():
    p = extract_patient_info("PID|1||||||||")
    assert p.id == "Unknown"
    assert p.name == "Unknown Patient"
    assert p.date_of_birth == datetime.date(1970, 1, 1)
    assert p.gender == "U"


def test_patient_info_last_name_only_and_bad_dob():
    p = extract_patient_info("PID|1||77||DOE||1999XX01|F")
    assert p.name == "DOE"
    assert p.date_of_birth == DEFAULT_DATE_OF_BIRTH
    assert p.gender == "F"


def test_patient_info_unknown_gender_code_is_coerced():
    assert extract_patient_info("PID|1||77||DOE^JANE||19800101|O").gender == "U"


@pytest.mark.parametrize(
    "raw, expected",
    [("<3", 2.9), (">90", 90.1), ("8", 8.0), ("5.25", 5.25), ("7.7 H", 7.7)],
)
def test_observation_value_numeric(raw, expected):
    assert parse_observation_value(raw) == pytest.approx(expected)


def test_observation_value_keeps_text():
    assert parse_observation_value("pending") == "pending"
    assert parse_observation_value("<abc") == "<abc"


def test_extract_observations_fields():
    out = extract_observations(
        ["OBX|1|NM|14798-3^S Iron:^LN||8|umol/L^umol/L|5-30||||F|||202306101318"]
    )
    assert out.skipped == []
    (r,) = out.results
    assert r.code == "14798-3"
    assert r.name == "S Iron:"
    assert r.value == 8.0 and r.is_numeric
    assert r.units == "umol/L"
    assert r.reference_range == "5-30"
    assert r.date == datetime.date(2023, 6, 10)


def test_extract_observations_filters_non_numeric_kinds():
    out = extract_observations(
        [
            "OBX|1|ST|NOTE^Comment||See attached||||||F",
            "OBX|2|NM|GLU^Glucose||||||||F",
            "OBX|3|ST|CRP^CRP||<5|mg/L|||||F",
            "OBX|4|TX|X^Y||   |||||F",
        ]
    )
    assert [r.code for r in out.results] == ["CRP"]
    assert out.results[0].value == pytest.approx(4.9)


def test_extract_observations_name_fallbacks():
    out = extract_observations(["OBX|1|NM|ABC||1|u", "OBX|2|NM|||2|u"])
    assert out.results[0].name == "ABC"
    assert out.results[1].name == UNKNOWN_TEST_NAME
    assert out.results[1].date is None


def test_broken_segment_is_skipped_not_fatal(monkeypatch):
    import oru_analyzer.parsers.oru as oru

    real = oru.parse_observation_value

    def _boom(raw):
        if raw == "13":
            raise ValueError("boom")
        return real(raw)

    monkeypatch.setattr(oru, "parse_observation_value", _boom)
    out = extract_observations(["OBX|1|NM|A^A||12|u", "OBX|2|NM|B^B||13|u", "OBX|3|NM|C^C||14|u"])
    assert [r.code for r in out.results] == ["A", "C"]
    assert len(out.skipped) == 1
    assert out.skipped[0].index == 1
    assert out.skipped[0].reason == "boom"


def test_parse_oru_sample():
    parsed = parse_oru(ORU_MESSAGE)
    assert parsed.header.message_type == "ORU^R01"
    assert parsed.header.control_id == "MSG00001"
    assert parsed.patient.name == "JOHN SMITH"
    assert len(parsed.observations) == 7
    assert parsed.segment_counts["OBX"] == 8


def test_parse_hl7_date():
    assert parse_hl7_date("202306101318") == datetime.date(2023, 6, 10)
    assert parse_hl7_date("2023") is None
    assert parse_hl7_date("20231340") is None


def test_parse_decimal():
    assert parse_decimal("3.5") == 3.5
    assert parse_decimal(" 12abc") == 12.0
    assert parse_decimal("") is None
    assert parse_decimal("n/a") is None
