"""
Tests for the Tandem API client and the facility scan source.

HTTP is mocked at the session level.
"""

from unittest.mock import MagicMock

import pytest
import requests

from tandem_systems.api.client import (
    FacilityScanSource,
    TandemClient,
    default_model_urn,
    element_rows,
    is_default_model,
)
from tandem_systems.core.columns import ElementFlags
from tandem_systems.core.config import Settings
from tandem_systems.core.errors import ScanError, TandemAPIError, TandemError

FACILITY = "urn:adsk.dtt:FAC123"
DEFAULT_MODEL = "urn:adsk.dtm:FAC123"


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return TandemClient(base_url="https://tandem.test/api/v1/", session=session)


class TestUrns:

    def test_default_model_urn(self):
        assert default_model_urn(FACILITY) == DEFAULT_MODEL

    def test_is_default_model(self):
        assert is_default_model(FACILITY, DEFAULT_MODEL)
        assert not is_default_model(FACILITY, "urn:adsk.dtm:OTHER")
        assert not is_default_model(None, DEFAULT_MODEL)


class TestElementRows:

    def test_version_row_dropped(self):
        payload = [{"v": 3}, {"k": "a", "n:n": ["A"]}, "junk", {"k": "b"}]
        assert [r["k"] for r in element_rows(payload)] == ["a", "b"]

    def test_non_list_payload(self):
        with pytest.raises(TandemError):
            element_rows({"error": "nope"})


class TestScan:

    def test_scan_posts_payload(self, client, session, mock_response):
        session.post.return_value = mock_response([{"v": 1}, {"k": "e1"}])

        rows = client.scan("urn:adsk.dtm:M1", families=["n", "m"])

        assert rows == [{"k": "e1"}]
        url = session.post.call_args.args[0]
        assert url == "https://tandem.test/api/v1/modeldata/urn:adsk.dtm:M1/scan"
        assert session.post.call_args.kwargs["json"] == {"includeHistory": False, "families": ["n", "m"]}

    def test_scan_qualified_columns(self, client, session, mock_response):
        session.post.return_value = mock_response([])
        client.scan("urn:adsk.dtm:M1", qualified_columns=["z:LQ"])
        assert session.post.call_args.kwargs["json"] == {"includeHistory": False, "qualifiedColumns": ["z:LQ"]}

    def test_http_error(self, client, session, mock_response):
        session.post.return_value = mock_response(status_code=404, reason="Not Found")
        with pytest.raises(TandemAPIError) as exc_info:
            client.scan("urn:adsk.dtm:M1")
        assert exc_info.value.status_code == 404

    def test_invalid_json(self, client, session, mock_response):
        response = mock_response()
        response.json.side_effect = ValueError("bad json")
        session.post.return_value = response
        with pytest.raises(TandemError):
            client.scan("urn:adsk.dtm:M1")

    def test_element_count(self, client, session, mock_response):
        session.post.return_value = mock_response([{"v": 1}, {"k": "a"}, {"k": "b"}])
        assert client.get_element_count("urn:adsk.dtm:M1") == 2


class TestFacility:

    def test_list_models(self, client, session, mock_response):
        session.get.return_value = mock_response({
            "links": [
                {"modelId": DEFAULT_MODEL, "label": "", "main": True, "on": True},
                {"modelId": "urn:adsk.dtm:MEP", "label": "MEP"},
                {"label": "broken link"},
            ]
        })

        models = client.list_models(FACILITY)

        assert [m.model_id for m in models] == [DEFAULT_MODEL, "urn:adsk.dtm:MEP"]
        assert models[0].is_main
        assert models[0].display_name == "Untitled Model"
        assert models[1].display_name == "MEP"
        assert session.get.call_args.args[0] == f"https://tandem.test/api/v1/twins/{FACILITY}"

    def test_list_models_null_label(self, client, session, mock_response):
        session.get.return_value = mock_response({"links": [{"modelId": "urn:adsk.dtm:MEP", "label": None}]})

        models = client.list_models(FACILITY)

        assert models[0].label == ""
        assert models[0].display_name == "Untitled Model"

    def test_list_models_skips_non_dict_links(self, client, session, mock_response):
        session.get.return_value = mock_response({"links": ["urn:adsk.dtm:MEP", {"modelId": DEFAULT_MODEL}]})
        assert [m.model_id for m in client.list_models(FACILITY)] == [DEFAULT_MODEL]

    @pytest.mark.parametrize("payload", [["not", "a", "facility"], {"links": "urn:adsk.dtm:MEP"}])
    def test_list_models_unexpected_payload(self, client, session, mock_response, payload):
        session.get.return_value = mock_response(payload)
        with pytest.raises(TandemError):
            client.list_models(FACILITY)

    def test_get_streams_filters_flag(self, client, session, mock_response):
        session.post.return_value = mock_response([
            {"v": 1},
            {"k": "s1", "n:a": [ElementFlags.STREAM]},
            {"k": "e1", "n:a": [ElementFlags.SIMPLE_ELEMENT]},
        ])
        streams = client.get_streams(FACILITY)
        assert [s["k"] for s in streams] == ["s1"]
        assert DEFAULT_MODEL in session.post.call_args.args[0]

    def test_last_seen_values(self, client, session, mock_response):
        session.post.return_value = mock_response({"s1": {}})
        assert client.get_last_seen_stream_values(FACILITY, ["s1"]) == {"s1": {}}
        assert session.post.call_args.kwargs["json"] == {"keys": ["s1"]}
        assert session.post.call_args.args[0].endswith(f"timeseries/models/{DEFAULT_MODEL}/streams")


class TestFromSettings:

    def test_builds_session(self):
        settings = Settings(access_token="tok", region="EMEA", base_url="https://x/api", max_retries=1)
        client = TandemClient.from_settings(settings)
        assert client.base_url == "https://x/api"
        assert client.session.config.max_retries == 1
        assert client.session._headers == {"Authorization": "Bearer tok", "Region": "EMEA"}


class TestFacilityScanSource:

    @pytest.fixture
    def source(self, client):
        return FacilityScanSource(client, FACILITY)

    def test_primary_scan_families(self, source, session, mock_response):
        session.post.return_value = mock_response([{"k": "sys"}])
        assert source.scan_primary_model() == [{"k": "sys"}]
        assert DEFAULT_MODEL in session.post.call_args.args[0]
        assert session.post.call_args.kwargs["json"]["families"] == ["n", "l"]

    def test_member_scan_families(self, source, session, mock_response):
        session.post.return_value = mock_response([])
        source.scan_model("urn:adsk.dtm:MEP")
        assert session.post.call_args.kwargs["json"]["families"] == ["n", "m"]

    def test_http_error_becomes_scan_error(self, source, session, mock_response):
        session.post.return_value = mock_response(status_code=500, reason="Server Error")
        with pytest.raises(ScanError) as exc_info:
            source.scan_model("urn:adsk.dtm:MEP")
        assert exc_info.value.model_id == "urn:adsk.dtm:MEP"

    def test_transport_error_becomes_scan_error(self, source, session):
        session.post.side_effect = requests.ConnectionError("reset")
        with pytest.raises(ScanError):
            source.scan_primary_model()

    def test_list_models_error(self, source, session):
        session.get.side_effect = requests.Timeout("slow")
        with pytest.raises(ScanError):
            source.list_models()

    def test_list_models_bad_payload_becomes_scan_error(self, source, session, mock_response):
        session.get.return_value = mock_response([{"modelId": DEFAULT_MODEL}])
        with pytest.raises(ScanError):
            source.list_models()

    def test_invalid_descriptor_becomes_scan_error(self, source, session, mock_response):
        session.get.return_value = mock_response({"links": [{"modelId": DEFAULT_MODEL, "main": "sometimes"}]})
        with pytest.raises(ScanError):
            source.list_models()
