# ===============================
# File: oru_analyzer/commons/constants.py
# ===============================
from datetime import date

# Segment tags. The header marker is what makes a text an ORU message at all.
MSH = "MSH"
PID = "PID"
OBX = "OBX"
HEADER_MARKER = "MSH|"

FIELD_SEP = "|"
COMP_SEP = "^"

# OBX-2 value types accepted without looking at the value itself
NUMERIC_OBS_TYPES = ("NM", "SN")

# Patient defaults, used when PID is missing or a field is empty
DEFAULT_PATIENT_ID = "Unknown"
DEFAULT_PATIENT_NAME = "Unknown Patient"
DEFAULT_DATE_OF_BIRTH = date(1970, 1, 1)
DEFAULT_GENDER = "U"
GENDERS = ("M", "F", "U")

UNKNOWN_TEST_NAME = "Unknown Test"

# "<3" is stored as 2.9 and ">90" as 90.1 (at least as abnormal as the bound)
COMPARATOR_OFFSET = 0.1

# Age scope of a catalog row when min_age / max_age cannot be read
DEFAULT_MIN_AGE = 0
DEFAULT_MAX_AGE = 150

# A catalog row whose effective bounds are both this value has no range set
UNCONFIGURED_BOUND = 0.0

ALIAS_SEP = ";"

CATALOG_COLUMNS = (
    "name",
    "oru_sonic_codes",
    "diagnostic",
    "diagnostic_groups",
    "oru_sonic_units",
    "units",
    "min_age",
    "max_age",
    "gender",
    "standard_lower",
    "standard_higher",
    "everlab_lower",
    "everlab_higher",
)
