"""
API tests for preventive cut configuration, execution and alert follow-up
"""
from datetime import date

import pytest


@pytest.fixture
def cut_api_setup(seed):
    year = seed.academic_year()
    term = seed.term(year)
    assignment = seed.assignment(year)
    component = seed.component("EX", "Evaluaciones")
    plan = seed.plan(assignment, term, [(component, 100)])
    quiz = seed.activity(plan, component, "Quiz", due_date=date(2025, 3, 1))
    seed.scale()
    low = seed.enrollment(year, "Beto", "Alvarez")
    high = seed.enrollment(year, "Ana", "Zapata")
    seed.grade(low, quiz, 2.0)
    seed.grade(high, quiz, 4.8)
    return {"term": term, "assignment": assignment, "low": low, "high": high}


def _execute(client, s, **extra):
    return client.post(
        "/preventive-cuts/execute",
        json={"teacherAssignmentId": s["assignment"].id, "academicTermId": s["term"].id, **extra},
    )


def test_execute_without_config_or_cutoff_is_rejected(client, cut_api_setup):
    response = _execute(client, cut_api_setup)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PREVENTIVE_CUT_NOT_CONFIGURED"
    assert client.get("/preventive-cuts/alerts").json() == []


def test_config_upsert_and_get(client, cut_api_setup):
    s = cut_api_setup
    assert client.get("/preventive-cuts/config", params={"academicTermId": s["term"].id}).status_code == 404

    client.post(
        "/preventive-cuts/config",
        json={"academicTermId": s["term"].id, "cutoffDate": "2025-04-15", "riskThresholdScore": 3.0},
    )
    updated = client.post(
        "/preventive-cuts/config",
        json={"academicTermId": s["term"].id, "cutoffDate": "2025-04-20", "riskThresholdScore": 3.5},
    )

    assert updated.status_code == 200
    config = client.get("/preventive-cuts/config", params={"academicTermId": s["term"].id}).json()
    assert config["cutoffDate"] == "2025-04-20"
    assert config["riskThresholdScore"] == 3.5


def test_config_threshold_out_of_range(client, cut_api_setup):
    response = client.post(
        "/preventive-cuts/config",
        json={"academicTermId": cut_api_setup["term"].id, "cutoffDate": "2025-04-15", "riskThresholdScore": 6},
    )
    assert response.status_code == 422


def test_execute_with_config(client, cut_api_setup):
    s = cut_api_setup
    client.post(
        "/preventive-cuts/config",
        json={"academicTermId": s["term"].id, "cutoffDate": "2025-04-15", "riskThresholdScore": 3.0},
    )

    response = _execute(client, s)

    assert response.status_code == 200
    body = response.json()
    assert body["cutoffDate"] == "2025-04-15"
    assert body["totalStudents"] == 2
    assert body["atRisk"] == 1
    low, high = body["alerts"]
    assert (low["studentEnrollmentId"], low["status"], low["performanceLevel"]) == (s["low"].id, "OPEN", "BAJO")
    assert (high["studentEnrollmentId"], high["status"], high["computedGrade"]) == (s["high"].id, "RESOLVED", 4.8)
    assert low["studentEnrollment"]["student"]["lastName"] == "Alvarez"


def test_execute_unknown_assignment(client, cut_api_setup):
    response = client.post(
        "/preventive-cuts/execute",
        json={"teacherAssignmentId": "missing", "academicTermId": cut_api_setup["term"].id, "cutoffDate": "2025-04-15"},
    )
    assert response.status_code == 404


def test_alert_follow_up_survives_recompute(client, cut_api_setup):
    s = cut_api_setup
    first = _execute(client, s, cutoffDate="2025-04-15").json()
    alert_id = first["alerts"][0]["id"]

    patched = client.patch(
        f"/preventive-cuts/alerts/{alert_id}",
        json={"status": "IN_RECOVERY", "recoveryPlan": "Taller de refuerzo", "meetingAt": "2025-04-20T10:00:00"},
    )
    assert patched.status_code == 200
    assert patched.json()["status"] == "IN_RECOVERY"

    second = _execute(client, s, cutoffDate="2025-04-15").json()
    alert = next(a for a in second["alerts"] if a["id"] == alert_id)
    assert alert["status"] == "IN_RECOVERY"
    assert alert["recoveryPlan"] == "Taller de refuerzo"
    assert alert["meetingAt"].startswith("2025-04-20T10:00:00")

    listed = client.get("/preventive-cuts/alerts", params={"status": "IN_RECOVERY"}).json()
    assert [a["id"] for a in listed] == [alert_id]


def test_patch_only_changes_sent_fields(client, cut_api_setup):
    s = cut_api_setup
    alert_id = _execute(client, s, cutoffDate="2025-04-15").json()["alerts"][0]["id"]
    client.patch(f"/preventive-cuts/alerts/{alert_id}", json={"recoveryPlan": "Plan A"})

    patched = client.patch(f"/preventive-cuts/alerts/{alert_id}", json={"notes": "Seguimiento"})

    body = patched.json()
    assert body["notes"] == "Seguimiento"
    assert body["recoveryPlan"] == "Plan A"
    assert body["status"] == "OPEN"


def test_patch_unknown_alert(client):
    response = client.patch("/preventive-cuts/alerts/missing", json={"notes": "x"})
    assert response.status_code == 404


def test_list_alerts_filters(client, cut_api_setup):
    s = cut_api_setup
    _execute(client, s, cutoffDate="2025-04-15")

    by_student = client.get("/preventive-cuts/alerts", params={"studentEnrollmentId": s["high"].id}).json()
    open_alerts = client.get(
        "/preventive-cuts/alerts",
        params={"teacherAssignmentId": s["assignment"].id, "academicTermId": s["term"].id, "status": "OPEN"},
    ).json()

    assert [a["status"] for a in by_student] == ["RESOLVED"]
    assert [a["studentEnrollmentId"] for a in open_alerts] == [s["low"].id]
