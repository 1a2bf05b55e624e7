"""
Integration tests for the simulator HTTP API.
Tests instance lifecycle, control validation, and response formats.
"""
import pytest
from fastapi.testclient import TestClient
from ecg_trace.api import app
import main


class TestAPIEndpoints:
    """Drive a simulator instance over HTTP."""

    @pytest.fixture
    def client(self):
        """Create test client for API testing."""
        return TestClient(app)

    @pytest.fixture
    def instance(self, client):
        """A quiet 200px instance on lead II."""
        response = client.post("/instances", json={
            "viewport_width_px": 200,
            "settings": {"seed": 3, "noise_level": 0.0},
        })
        assert response.status_code == 201
        return response.json()

    @pytest.mark.integration
    def test_create_instance_state(self, instance):
        assert instance["lead"] == "II"
        assert instance["viewport_width_px"] == 200
        assert instance["viewport_height_px"] == 300
        assert instance["scan_cursor"] == 0
        assert instance["rhythm_mode"] == "SINUS"
        assert instance["condition_id"] is None

    @pytest.mark.integration
    def test_create_with_unknown_lead_rejected(self, client):
        response = client.post("/instances", json={"viewport_width_px": 100, "settings": {"lead": "V9"}})
        assert response.status_code == 422

    @pytest.mark.integration
    def test_advance_and_read_samples(self, client, instance):
        iid = instance["instance_id"]
        response = client.post(f"/instances/{iid}/advance", json={"elapsed_sec": 0.1})
        assert response.status_code == 200
        data = response.json()
        assert data["samples_written"] == 10
        assert data["scan_cursor"] == 10
        assert data["time_sec"] == pytest.approx(0.1)

        samples = client.get(f"/instances/{iid}/samples", params={"start": 0, "count": 12}).json()
        assert samples["scan_cursor"] == 10
        assert len(samples["samples"]) == 12
        assert samples["samples"][0]["time"] == pytest.approx(0.01)
        assert samples["samples"][11]["time"] is None

    @pytest.mark.integration
    def test_samples_start_out_of_range(self, client, instance):
        response = client.get(f"/instances/{instance['instance_id']}/samples", params={"start": 201})
        assert response.status_code == 422

    @pytest.mark.integration
    def test_condition_change(self, client, instance):
        iid = instance["instance_id"]
        response = client.put(f"/instances/{iid}/condition", json={"condition_id": "hyperkalemia"})
        assert response.status_code == 200
        state = response.json()
        assert state["condition_id"] == "hyperkalemia"
        assert state["target_heart_rate_bpm"] == 50
        assert state["alert_regions"] == ["qrs"]
        assert state["noise_level"] == pytest.approx(0.05)

    @pytest.mark.integration
    def test_lead_change_reveals_localized_pattern(self, client, instance):
        iid = instance["instance_id"]
        client.put(f"/instances/{iid}/condition", json={"condition_id": "stemi_ant"})
        assert client.get(f"/instances/{iid}/info").json()["visibility"] == "hidden"

        state = client.put(f"/instances/{iid}/lead", json={"lead": "V2"}).json()
        assert state["alert_regions"] == ["st"]
        info = client.get(f"/instances/{iid}/info").json()
        assert info["visibility"] == "visible"
        assert info["name"] == "Anterior STEMI (LAD)"

    @pytest.mark.integration
    def test_info_defaults_to_normal(self, client, instance):
        info = client.get(f"/instances/{instance['instance_id']}/info").json()
        assert info["condition_id"] == "normal"
        assert info["visibility"] == "global"
        assert info["visibility_note"] is None

    @pytest.mark.integration
    @pytest.mark.parametrize("path,body", [
        ("paper_speed", {"paper_speed_mm_s": 30}),
        ("noise", {"noise_level": 2.0}),
        ("rate", {"heart_rate_bpm": -5}),
        ("zoom", {"amplitude_zoom": 0}),
        ("lead", {"lead": "X"}),
    ])
    def test_invalid_controls_rejected(self, client, instance, path, body):
        response = client.put(f"/instances/{instance['instance_id']}/{path}", json=body)
        assert response.status_code == 422

    @pytest.mark.integration
    def test_valid_controls(self, client, instance):
        iid = instance["instance_id"]
        assert client.put(f"/instances/{iid}/paper_speed", json={"paper_speed_mm_s": 50}).json()["paper_speed_mm_s"] == 50
        assert client.put(f"/instances/{iid}/rate", json={"heart_rate_bpm": 0}).json()["target_heart_rate_bpm"] == 0
        assert client.put(f"/instances/{iid}/zoom", json={"amplitude_zoom": 1.5}).json()["amplitude_zoom"] == 1.5

    @pytest.mark.integration
    def test_pause_blocks_advance(self, client, instance):
        iid = instance["instance_id"]
        assert client.post(f"/instances/{iid}/pause").json()["is_paused"] is True
        assert client.post(f"/instances/{iid}/advance", json={"elapsed_sec": 0.1}).json()["samples_written"] == 0
        assert client.post(f"/instances/{iid}/resume").json()["is_paused"] is False
        assert client.post(f"/instances/{iid}/advance", json={"elapsed_sec": 0.1}).json()["samples_written"] == 10

    @pytest.mark.integration
    def test_resize_restarts_sweep(self, client, instance):
        iid = instance["instance_id"]
        client.post(f"/instances/{iid}/advance", json={"elapsed_sec": 0.1})
        state = client.put(f"/instances/{iid}/viewport", json={"width_px": 80, "height_px": 120}).json()
        assert state["scan_cursor"] == 0
        assert state["viewport_width_px"] == 80
        samples = client.get(f"/instances/{iid}/samples").json()["samples"]
        assert len(samples) == 80
        assert all(s["y"] == 60 for s in samples)

    @pytest.mark.integration
    def test_shock(self, client, instance):
        iid = instance["instance_id"]
        client.put(f"/instances/{iid}/condition", json={"condition_id": "vf"})
        state = client.post(f"/instances/{iid}/shock").json()
        assert state["condition_id"] == "normal"
        assert state["rhythm_mode"] == "SINUS"

    @pytest.mark.integration
    def test_labels(self, client, instance):
        iid = instance["instance_id"]
        for _ in range(10):
            client.post(f"/instances/{iid}/advance", json={"elapsed_sec": 0.1})
        labels = client.get(f"/instances/{iid}/labels").json()
        assert {"P", "Q", "R", "S", "T"} <= {m["label"] for m in labels}

    @pytest.mark.integration
    def test_label_positions_follow_toggle(self, client, instance):
        iid = instance["instance_id"]
        for _ in range(10):
            client.post(f"/instances/{iid}/advance", json={"elapsed_sec": 0.1})
        assert client.get(f"/instances/{iid}/labels/positions").json() == []

        state = client.post(f"/instances/{iid}/labels/toggle").json()
        assert state["show_labels"] is True
        positions = client.get(f"/instances/{iid}/labels/positions").json()
        r_columns = [p["x"] for p in positions if p["label"] == "R"]
        assert r_columns == [pytest.approx(10.0, abs=1e-6)]
        assert all(0 <= p["x"] < 200 for p in positions)

    @pytest.mark.integration
    def test_twelve_lead_snapshot(self, client, instance):
        iid = instance["instance_id"]
        for _ in range(3):
            client.post(f"/instances/{iid}/advance", json={"elapsed_sec": 0.1})
        snapshot = client.get(f"/instances/{iid}/leads").json()
        voltages = snapshot["voltages_mv"]
        assert snapshot["time_sec"] == pytest.approx(0.3)
        assert len(voltages) == 12
        assert voltages["aVR"] == pytest.approx(-0.8 * voltages["II"])
        assert voltages["V4"] == pytest.approx(1.1 * voltages["II"])

    @pytest.mark.integration
    def test_conditions_listing(self, client):
        data = client.get("/conditions").json()
        assert data["menu"][0]["category"] == "Ischemia / MI"
        assert data["conditions"]["stemi_inf"]["st_elevation_leads"] == ["II", "III", "aVF"]
        assert data["conditions"]["vf"]["base_rate"] is None

    @pytest.mark.integration
    def test_delete_and_unknown_instance(self, client, instance):
        iid = instance["instance_id"]
        assert client.delete(f"/instances/{iid}").status_code == 204
        assert client.get(f"/instances/{iid}").status_code == 404
        assert client.delete(f"/instances/{iid}").status_code == 404
        assert client.post("/instances/missing/advance", json={"elapsed_sec": 0.1}).status_code == 404


class TestRootApplication:
    """The mounted application served by uvicorn."""

    @pytest.fixture
    def client(self):
        return TestClient(main.app)

    @pytest.mark.integration
    def test_health(self, client):
        assert client.get("/").json()["status"] == "ok"
        health = client.get("/health").json()
        assert health["status"] == "healthy"
        assert isinstance(health["instances"], int)

    @pytest.mark.integration
    def test_api_mounted(self, client):
        response = client.post("/api/instances", json={"viewport_width_px": 50})
        assert response.status_code == 201
        iid = response.json()["instance_id"]
        assert client.get(f"/api/instances/{iid}").json()["viewport_width_px"] == 50
