"""
API tests for the operational endpoints
"""
from gradebook import __version__


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_metrics_exposes_gradebook_counters(client, graded_setup):
    s = graded_setup
    client.post(
        "/student-grades",
        json={
            "studentEnrollmentId": s["enrollment"].id,
            "evaluativeActivityId": s["activity_a"].id,
            "score": 4.0,
        },
    )

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "gradebook_grades_written_total" in response.text
