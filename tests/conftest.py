import pytest

from oru_analyzer.commons.oru_engine import ORUEngine
from oru_analyzer.parsers.catalog import parse_catalog
from tests.samples import CATALOG_CSV


@pytest.fixture
def engine():
    return ORUEngine({"catalog": {"source": "catalog.csv"}})


@pytest.fixture
def catalog():
    return parse_catalog(CATALOG_CSV)
