"""
Tests for cross-model property search.
"""

from unittest.mock import MagicMock

import pytest

from tandem_systems.core.errors import TandemAPIError
from tandem_systems.core.models import ModelDescriptor
from tandem_systems.schema import SchemaCache
from tandem_systems.search import (
    SearchOptions,
    build_matcher,
    element_matches,
    resolve_qualified_column,
    results_to_elements_by_model,
    search_facility,
)

ATTRIBUTES = [
    {"id": "n:n", "category": "Identity Data", "name": "Name"},
    {"id": "z:LQ", "category": "Common", "name": "Flow"},
]


class TestMatchers:

    def test_partial_case_insensitive(self):
        match = build_matcher(SearchOptions(value="pump"))
        assert match("Supply Pump 1")
        assert not match("Fan")

    def test_partial_case_sensitive(self):
        match = build_matcher(SearchOptions(value="pump", case_sensitive=True))
        assert not match("Supply Pump 1")

    def test_exact(self):
        match = build_matcher(SearchOptions(value="AHU-1", match_type="exact"))
        assert match("ahu-1")
        assert not match("AHU-10")

    def test_wildcard_regex(self):
        match = build_matcher(SearchOptions(value="AHU-?", match_type="regex"))
        assert match("AHU-1")
        assert not match("FCU-1")

    def test_invalid_regex_falls_back_to_partial(self):
        match = build_matcher(SearchOptions(value="(unclosed", match_type="regex"))
        assert match("an (unclosed bracket")

    @pytest.mark.parametrize("operator,value,expected", [
        (">", "12.5", True),
        ("<", 12, False),
        ("=", "10", True),
        ("!=", 10, False),
        (">=", "abc", False),
        (">", True, False),
        (">", "12 kW", True),
        ("<", " 9.5e0 m3/h", True),
        ("=", "10.0 degC", True),
        (">", "kW 12", False),
        ("<", "NaN", False),
    ])
    def test_numeric(self, operator, value, expected):
        threshold = 10 if operator in ("=", "!=") else 11
        match = build_matcher(SearchOptions(value=threshold, data_type="numeric", operator=operator))
        assert match(value) is expected

    def test_boolean(self):
        match = build_matcher(SearchOptions(value=True, data_type="boolean"))
        assert match(True) and match("true") and match(1)
        assert not match(False) and not match("0")

    def test_element_matches_any_value(self):
        match = build_matcher(SearchOptions(value="b"))
        assert element_matches({"k": "e", "z:LQ": ["a", "b"]}, "z:LQ", match)
        assert not element_matches({"k": "e"}, "z:LQ", match)


class TestResolveColumn:

    def test_display_name(self):
        assert resolve_qualified_column(ATTRIBUTES, "common.flow") == "z:LQ"

    def test_raw_column_passthrough(self):
        assert resolve_qualified_column(ATTRIBUTES, "z:Xy") == "z:Xy"

    def test_unknown(self):
        assert resolve_qualified_column(ATTRIBUTES, "Common.Missing") is None

    def test_describe(self):
        assert SearchOptions(value=5, data_type="numeric", operator=">").describe() == "> 5"
        assert SearchOptions(value=False, data_type="boolean").describe() == "false"


class TestSearchFacility:

    @pytest.fixture
    def models(self):
        return [
            ModelDescriptor(model_id="urn:adsk.dtm:A", label="Arch"),
            ModelDescriptor(model_id="urn:adsk.dtm:B", label="MEP"),
            ModelDescriptor(model_id="urn:adsk.dtm:C", label="Site"),
            ModelDescriptor(model_id="urn:adsk.dtm:D", label="Broken"),
        ]

    @pytest.fixture
    def cache(self):
        schemas = {
            "urn:adsk.dtm:A": {"attributes": ATTRIBUTES},
            "urn:adsk.dtm:B": {"attributes": ATTRIBUTES},
            "urn:adsk.dtm:C": {"attributes": ATTRIBUTES[:1]},
        }

        def load(urn):
            if urn not in schemas:
                raise TandemAPIError(404, "Not Found")
            return schemas[urn]

        return SchemaCache(load)

    @pytest.fixture
    def client(self):
        rows = {
            "urn:adsk.dtm:A": [{"k": "a1", "z:LQ": [5]}, {"k": "a2", "z:LQ": [50]}],
        }

        def scan(model_urn, qualified_columns=None):
            if model_urn not in rows:
                raise TandemAPIError(500, "Server Error")
            return rows[model_urn]

        client = MagicMock()
        client.scan.side_effect = scan
        return client

    def test_search(self, client, models, cache):
        options = SearchOptions(value=10, data_type="numeric", operator=">")

        found = search_facility(client, models, cache, "Common.Flow", options)

        assert found.total_matches == 1
        assert found.results[0].model_name == "Arch"
        assert found.results[0].qualified_column == "z:LQ"
        assert found.models_with_property == ["Arch", "MEP"]
        assert found.models_without_property == ["Site", "Broken"]

        by_model = results_to_elements_by_model(found.results)
        assert by_model[0].to_dict() == {"modelURN": "urn:adsk.dtm:A", "modelName": "Arch", "keys": ["a2"]}
