"""
Route tests using FastAPI's TestClient
"""
import pytest
from fastapi.testclient import TestClient

from conftest import fake_message, make_plan
from lesson_planner.server.app import create_app

FORM = {"class_number": "IX", "subject": "Physics", "date_range": "1-15 Aug", "bilingual": "true"}
FILES = {"syllabus": ("syllabus.pdf", b"%PDF-1.4", "application/pdf")}


@pytest.fixture
def client(session):
    return TestClient(create_app(session))


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_generate_plan(client, fake_api):
    resp = client.post("/plan", data=FORM, files=FILES)
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"] == "idle"
    assert body["active_plan"]["meta"]["subject"] == "Physics"
    assert "in parentheses" in fake_api.messages.create.call_args.kwargs["system"]

    history = client.get("/history").json()["plans"]
    assert [p["id"] for p in history] == [body["active_plan"]["id"]]


def test_generate_without_file(client, fake_api):
    resp = client.post("/plan", data=FORM)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please upload a syllabus file."
    assert client.get("/history").json()["plans"] == []
    fake_api.messages.create.assert_not_awaited()


def test_generation_failure_maps_to_502(client, fake_api):
    fake_api.messages.create.return_value = fake_message("{}")
    resp = client.post("/plan", data=FORM, files=FILES)
    assert resp.status_code == 502
    assert client.get("/plan/active").json()["error"].startswith("Failed to generate")


def test_select_history_item_and_print(client, history):
    history.append(make_plan("plan-1", 1000))

    resp = client.get("/history/plan-1")
    assert resp.status_code == 200
    assert resp.json()["active_plan"]["id"] == "plan-1"
    assert client.get("/history/nope").status_code == 404

    page = client.get("/plan/plan-1/print")
    assert page.status_code == 200
    assert "text/html" in page.headers["content-type"]
    assert "KVS Lesson Plan" in page.text
    assert client.get("/plan/nope/print").status_code == 404


def test_reset(client, history):
    history.append(make_plan("plan-1", 1000))
    client.get("/history/plan-1")
    assert client.post("/plan/reset").json()["active_plan"] is None


def test_dashboard_sorting(client, history):
    history.append(make_plan("p1", 1000, subject="Maths"))
    history.append(make_plan("p2", 2000, subject="Biology"))

    rows = client.get("/dashboard").json()
    assert [r["id"] for r in rows] == ["p2", "p1"]

    rows = client.get("/dashboard", params={"sort": "subject", "direction": "descending"}).json()
    assert [r["id"] for r in rows] == ["p1", "p2"]

    assert client.get("/dashboard", params={"sort": "bogus"}).status_code == 400


def test_signatures(client):
    assert client.get("/signatures").json() == {"teacher": None, "principal": None}
    pair = {"teacher": "data:image/png;base64,AAA", "principal": None}
    assert client.put("/signatures", json=pair).json() == pair
    assert client.get("/signatures").json() == pair


def test_generate_while_running_is_conflict(client, session, fake_api):
    session.state = "requesting"
    resp = client.post("/plan", data=FORM, files=FILES)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "generation_already_running"
    fake_api.messages.create.assert_not_awaited()
    assert client.get("/history").json()["plans"] == []
