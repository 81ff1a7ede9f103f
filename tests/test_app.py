"""Tests for the Flask API shell."""

from __future__ import annotations

import json

import pytest

import app as app_module
from engines import storage
from engines.funnel import EO, FIO, LIO, PERFORMANCE, SETTINGS, TARGETS, default_state
from engines.report import ExportUnavailable


@pytest.fixture
def client(store_dir, monkeypatch):
    monkeypatch.setattr(app_module, "STATE", {"state": None, "activeTool": None, "loaded": False})
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def _stored_state(store_dir) -> dict:
    return json.loads((store_dir / f"{storage.STATE_KEY}.json").read_text(encoding="utf-8"))


class TestSession:
    def test_defaults_on_first_run(self, client) -> None:
        body = client.get("/api/state").get_json()
        assert body["state"] == default_state()
        assert body["activeTool"] == LIO
        assert set(body["tools"]) == {LIO, FIO, EO}

    def test_restores_stored_snapshot(self, store_dir, client) -> None:
        stored = default_state()
        stored[SETTINGS]["offerName"] = "Agency Retainer"
        storage.save_state(stored)
        storage.save_active_tool(FIO)
        body = client.get("/api/state").get_json()
        assert body["state"][SETTINGS]["offerName"] == "Agency Retainer"
        assert body["activeTool"] == FIO

    def test_switch_active_tool(self, store_dir, client) -> None:
        resp = client.post("/api/active-tool", json={"tool": EO})
        assert resp.get_json()["activeTool"] == EO
        assert storage.load_active_tool() == EO
        assert client.get("/api/kpis").get_json()["tool"] == EO

    def test_unknown_active_tool(self, client) -> None:
        resp = client.post("/api/active-tool", json={"tool": "SMS"})
        assert resp.status_code == 400
        assert "unknown tool" in resp.get_json()["error"]


class TestFieldUpdates:
    def test_settings_update_is_persisted(self, store_dir, client) -> None:
        resp = client.post("/api/field", json={"field": "offerPrice", "value": "7500"})
        assert resp.status_code == 200
        assert resp.get_json()["state"][SETTINGS]["offerPrice"] == 7500
        assert _stored_state(store_dir)[SETTINGS]["offerPrice"] == 7500

    def test_tool_update(self, store_dir, client) -> None:
        client.post("/api/field", json={"tool": EO, "section": PERFORMANCE,
                                        "field": "dealsClosed", "value": "abc"})
        assert _stored_state(store_dir)[EO][PERFORMANCE]["dealsClosed"] == 0
        assert _stored_state(store_dir)[LIO] == default_state()[LIO]

    @pytest.mark.parametrize(
        "payload",
        [
            {"field": "offerCurrency", "value": 1},
            {"tool": EO, "section": TARGETS, "field": "totalShows", "value": 1},
            {"tool": "SMS", "section": TARGETS, "field": "closeRate", "value": 1},
            {"value": 1},
        ],
    )
    def test_unknown_field_is_rejected(self, client, payload: dict) -> None:
        resp = client.post("/api/field", json=payload)
        assert resp.status_code == 400
        assert client.get("/api/state").get_json()["state"] == default_state()

    @pytest.mark.parametrize("path", ["/api/field", "/api/active-tool"])
    def test_non_object_body_is_rejected(self, client, path: str) -> None:
        resp = client.post(path, json=["offerPrice", 1])
        assert resp.status_code == 400
        assert client.get("/api/state").get_json()["state"] == default_state()

    def test_reset(self, store_dir, client) -> None:
        client.post("/api/field", json={"field": "offerName", "value": "Workshop"})
        body = client.post("/api/reset").get_json()
        assert body["state"] == default_state()
        assert _stored_state(store_dir) == default_state()


class TestReadModels:
    def test_kpis(self, client) -> None:
        body = client.get("/api/kpis?tool=LIO").get_json()
        assert body["kpis"]["currentRevenue"] == 15000
        assert body["revenueProgress"]["percentage"] == pytest.approx(15.0)
        assert len(body["gapAnalysis"]) == 7
        assert body["funnel"][0]["value"] == 100

    def test_projection(self, client) -> None:
        body = client.get("/api/projection?tool=EO").get_json()
        assert body["volume"] == 1000
        assert body["projectedRevenue"] == pytest.approx(48000)
        assert body["stages"][-1]["display"] == "$48,000"

    def test_projection_with_volume(self, client) -> None:
        body = client.get("/api/projection?tool=EO&volume=2000").get_json()
        assert body["projectedRevenue"] == pytest.approx(96000)

    def test_plan(self, client) -> None:
        body = client.get("/api/plan?tool=EO").get_json()
        assert body["finalAction"]["display"] == 2084
        assert body["roundStages"] is False

    def test_plan_with_rounded_stages(self, client) -> None:
        body = client.get("/api/plan?tool=EO&roundStages=true").get_json()
        assert body["finalAction"]["value"] == 2090

    def test_unknown_tool_query(self, client) -> None:
        assert client.get("/api/kpis?tool=SMS").status_code == 400

    def test_view_follows_active_tool(self, client) -> None:
        client.post("/api/active-tool", json={"tool": FIO})
        body = client.get("/api/view").get_json()
        assert body["activeTool"] == FIO
        assert body["toolDetails"]["name"] == "Facebook & IG DM Outreach"
        assert body["plan"]["finalAction"]["label"] == "Messages to Send"
        assert body["projection"]["volume"] == 1000


class TestExport:
    def test_download(self, client) -> None:
        resp = client.get("/api/export")
        assert resp.status_code == 200
        assert resp.mimetype == app_module.XLSX_MIMETYPE
        disposition = resp.headers["Content-Disposition"]
        assert "attachment" in disposition
        assert "OutreachRoadmap_FullPlan_" in disposition
        assert resp.data[:2] == b"PK"

    def test_unavailable_library(self, client, monkeypatch) -> None:
        def _fail(state):
            raise ExportUnavailable("Excel export library could not be loaded.")

        monkeypatch.setattr(app_module, "build_report", _fail)
        resp = client.get("/api/export")
        assert resp.status_code == 503
        assert resp.get_json()["recoverable"] is True
        assert client.get("/api/state").status_code == 200
