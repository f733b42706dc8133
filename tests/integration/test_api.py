"""Integration tests for the FastAPI application."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from quorum_ai.api.app import create_app

_FLAKY_REGISTRY = """\
registries:
  - registry_id: aviation-flaky
    case_type: Underwriting
    evaluators:
      - evaluator_id: hull_risk
        display_name: Hull Risk
        capability: aircraft
        evaluator: quorum_ai.domains.aviation.evaluators:HullRiskEvaluator
      - evaluator_id: broken
        display_name: Broken Model
        evaluator: tests.fakes.fake_evaluators:RaisingEvaluator
"""


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[TestClient]:
    path = tmp_path / "registries.yaml"
    path.write_text(_FLAKY_REGISTRY)
    monkeypatch.setenv("QUORUM_REGISTRY_REGISTRY_FILE", str(path))
    monkeypatch.setattr("quorum_ai.api.app.setup_logging", lambda config: None)
    with TestClient(create_app()) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_ready(self, client: TestClient) -> None:
        resp = client.get("/ready")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ready"


class TestEvaluateCase:
    def test_default_registry(self, client: TestClient, aviation_case: dict) -> None:
        resp = client.post("/api/cases/evaluate", json={"case": aviation_case})
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "decided"
        assert data["registry_id"] == "aviation-default"
        assert data["synthesis"]["decision"] == "Conditional Accept"
        assert data["synthesis"]["deal_score"] == 64.83
        assert data["synthesis"]["override"] == "red_verdict_cap"
        assert len(data["exposure"]["checks"]) == 4
        assert data["committed"] == []

    def test_commit_moves_ledger(self, client: TestClient, aviation_case: dict) -> None:
        resp = client.post("/api/cases/evaluate", json={"case": aviation_case, "commit": True})
        assert resp.status_code == 200
        assert len(resp.json()["committed"]) == 4

        ledger = client.get("/api/ledger").json()
        assert len(ledger["history"]) == 4
        teb = next(c for c in ledger["checks"] if c["category"] == "TEB Hull Value")
        assert teb["current_exposure"] == 330_000_000

    def test_unknown_registry(self, client: TestClient, aviation_case: dict) -> None:
        resp = client.post("/api/cases/evaluate", json={"case": aviation_case, "registry_id": "marine-default"})
        assert resp.status_code == 404
        assert resp.json()["type"] == "registry_not_found"

    def test_unknown_case_type(self, client: TestClient, aviation_case: dict) -> None:
        aviation_case["case_type"] = "Marine"
        resp = client.post("/api/cases/evaluate", json={"case": aviation_case})
        assert resp.status_code == 400
        assert resp.json()["type"] == "invalid_case_input"

    def test_empty_holdings(self, client: TestClient, portfolio_case: dict) -> None:
        portfolio_case["attributes"]["holdings"] = []
        resp = client.post("/api/cases/evaluate", json={"case": portfolio_case})
        assert resp.status_code == 400
        data = resp.json()
        assert data["type"] == "invalid_case_input"
        assert data["retryable"] is False
        assert "holdings" in data["error"]

    def test_missing_pilot_hours(self, client: TestClient, aviation_case: dict) -> None:
        del aviation_case["attributes"]["pilot"]["total_hours"]
        resp = client.post("/api/cases/evaluate", json={"case": aviation_case})
        assert resp.status_code == 400
        assert "pilot.total_hours" in resp.json()["error"]

    def test_insufficient_quorum(self, client: TestClient, aviation_case: dict) -> None:
        resp = client.post("/api/cases/evaluate", json={"case": aviation_case, "registry_id": "aviation-flaky"})
        assert resp.status_code == 409
        data = resp.json()
        assert data["status"] == "incomplete"
        assert data["retryable"] is True
        assert data["missing_evaluators"] == ["broken"]
        assert [v["degraded"] for v in data["verdicts"]] == [False, True]

    def test_missing_case_rejected_by_validation(self, client: TestClient) -> None:
        resp = client.post("/api/cases/evaluate", json={"registry_id": "aviation-default"})
        assert resp.status_code == 422


class TestRegistries:
    def test_list(self, client: TestClient) -> None:
        ids = [r["registry_id"] for r in client.get("/api/registries").json()]
        assert ids == ["aviation-default", "aviation-flaky", "portfolio-default"]

    def test_get(self, client: TestClient) -> None:
        data = client.get("/api/registries/aviation-default").json()
        assert data["case_type"] == "Underwriting"
        assert len(data["evaluators"]) == 6

    def test_get_unknown(self, client: TestClient) -> None:
        assert client.get("/api/registries/nope").status_code == 404


class TestLedger:
    def test_check_is_read_only(self, client: TestClient) -> None:
        before = client.get("/api/ledger").json()["ledger_version"]
        resp = client.post(
            "/api/ledger/check",
            json={"case_id": "SUB-009", "proposed_deltas": {"New York Metro Exposure": 100_000_000}},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["worst_status"] == "Warning"
        assert data["checks"][0]["ratio"] == 0.9167
        assert client.get("/api/ledger").json()["ledger_version"] == before

    def test_check_unknown_category(self, client: TestClient) -> None:
        resp = client.post("/api/ledger/check", json={"proposed_deltas": {"Marine Hull": 1}})
        assert resp.status_code == 400

    def test_commit(self, client: TestClient) -> None:
        version = client.get("/api/ledger").json()["ledger_version"]
        body = {
            "case_id": "SUB-010",
            "proposed_deltas": {"TEB Hull Value": 10_000_000},
            "decision": "Quote",
            "expected_version": version,
        }
        resp = client.post("/api/ledger/commit", json=body)
        assert resp.status_code == 201
        assert resp.json()["ledger_version"] == version + 1
        assert resp.json()["entries"][0]["resulting_exposure"] == 295_000_000

        stale = client.post("/api/ledger/commit", json=body)
        assert stale.status_code == 409
        assert stale.json()["type"] == "ledger_contention"
        assert stale.json()["retryable"] is True

    def test_commit_declined(self, client: TestClient) -> None:
        resp = client.post(
            "/api/ledger/commit",
            json={"case_id": "SUB-011", "proposed_deltas": {"TEB Hull Value": 1}, "decision": "Decline"},
        )
        assert resp.status_code == 422
        assert resp.json()["type"] == "commit_not_permitted"


    def test_commit_guarded_by_category_versions(self, client: TestClient) -> None:
        read = client.post(
            "/api/ledger/check",
            json={"proposed_deltas": {"TEB Hull Value": 1, "New York Metro Exposure": 1}},
        ).json()
        versions = {c["category"]: c["version"] for c in read["checks"]}

        other = client.post(
            "/api/ledger/commit",
            json={"case_id": "SUB-020", "proposed_deltas": {"New York Metro Exposure": 5_000_000}, "decision": "Quote"},
        )
        assert other.status_code == 201

        resp = client.post(
            "/api/ledger/commit",
            json={
                "case_id": "SUB-021",
                "proposed_deltas": {"TEB Hull Value": 5_000_000},
                "decision": "Quote",
                "expected_versions": versions,
            },
        )
        assert resp.status_code == 201

        stale = client.post(
            "/api/ledger/commit",
            json={
                "case_id": "SUB-022",
                "proposed_deltas": {"New York Metro Exposure": 1_000_000},
                "decision": "Quote",
                "expected_versions": versions,
            },
        )
        assert stale.status_code == 409
        assert stale.json()["type"] == "ledger_contention"


class TestConsult:
    def test_disabled_assistant(self, client: TestClient, aviation_case: dict) -> None:
        resp = client.post("/api/consult", json={"case": aviation_case, "question": "Why was this capped?"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["available"] is False
        assert data["decision"] == "Conditional Accept"
        assert client.get("/api/ledger").json()["history"] == []
