"""
Tests for the command-line interface.

The Tandem client is replaced; no HTTP is issued.
"""

import json
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from tandem_systems import cli
from tandem_systems.core.errors import TandemAPIError
from tandem_systems.core.models import ModelDescriptor

from conftest import FakeSource, member_row

runner = CliRunner()

FACILITY = "urn:adsk.dtt:FAC"


@pytest.fixture
def fake_client(monkeypatch, restore_root_logger):
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    monkeypatch.setattr(cli.settings, "access_token", "tok")
    monkeypatch.setattr(cli.TandemClient, "from_settings", classmethod(lambda cls, s: client))
    return client


def test_missing_token(monkeypatch, restore_root_logger):
    monkeypatch.setattr(cli.settings, "access_token", None)
    result = runner.invoke(cli.app, ["models", FACILITY])
    assert result.exit_code == 1
    assert "TANDEM_ACCESS_TOKEN" in result.output


def test_models(fake_client):
    fake_client.list_models.return_value = [
        ModelDescriptor(model_id="urn:adsk.dtm:FAC", label="", is_main=True),
        ModelDescriptor(model_id="urn:adsk.dtm:MEP", label="MEP"),
    ]
    result = runner.invoke(cli.app, ["models", FACILITY])
    assert result.exit_code == 0
    assert "Untitled Model" in result.output
    assert "MEP" in result.output


def test_systems_json(fake_client, monkeypatch, tmp_path, primary_rows, s1_id):
    source = FakeSource(
        primary=primary_rows,
        models={"M1": [member_row("e1", 0b001, [s1_id])]},
    )
    monkeypatch.setattr(cli, "FacilityScanSource", lambda client, urn: source)
    out = tmp_path / "systems.json"

    result = runner.invoke(cli.app, ["systems", FACILITY, "--output", str(out)])

    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert [s["name"] for s in data] == ["S1"]
    assert data[0]["elementsByModel"][0]["keys"] == ["e1"]


def test_search_rejects_bad_number(fake_client):
    result = runner.invoke(cli.app, ["search", FACILITY, "Common.Flow", "abc", "--type", "numeric"])
    assert result.exit_code == 1
    assert "Not a number" in result.output


@pytest.mark.parametrize("args", [
    ["search", FACILITY, "Common.Flow", "12"],
    ["streams", FACILITY],
    ["diagnose", FACILITY],
])
def test_api_errors_exit_cleanly(fake_client, args):
    fake_client.list_models.side_effect = TandemAPIError(401, "Unauthorized")
    fake_client.get_streams.side_effect = TandemAPIError(401, "Unauthorized")

    result = runner.invoke(cli.app, args)

    assert result.exit_code == 1
    assert "HTTP 401: Unauthorized" in result.output
    assert not isinstance(result.exception, TandemAPIError)


def test_diagnose_skips_failed_schema(fake_client):
    fake_client.list_models.return_value = [
        ModelDescriptor(model_id="urn:adsk.dtm:ARCH", label="Arch"),
        ModelDescriptor(model_id="urn:adsk.dtm:MEP", label="MEP"),
    ]
    schemas = {
        "urn:adsk.dtm:MEP": {"attributes": [
            {"id": "z:AA", "category": "Common", "name": "Flow"},
            {"id": "z:AB", "category": "Common", "name": "Flow"},
        ]},
    }

    def get_schema(model_urn):
        if model_urn not in schemas:
            raise TandemAPIError(500, "Internal Server Error")
        return schemas[model_urn]

    fake_client.get_schema.side_effect = get_schema

    result = runner.invoke(cli.app, ["diagnose", FACILITY])

    assert result.exit_code == 0, result.output
    assert "Skipped model: Arch" in result.output
    assert "Duplicate Common.Flow: z:AA, z:AB" in result.output
