"""
API tests for evaluation configuration: plans, terms, components, activities, scale
"""
from gradebook.api.deps import get_term_cache
from gradebook.core.cache import TermGradeCache
from tests.conftest import INSTITUTION_ID


class TestEvaluationPlans:
    def test_single_component_at_70_is_rejected(self, client, seed):
        year = seed.academic_year()
        term = seed.term(year)
        assignment = seed.assignment(year)
        component = seed.component("A")

        response = client.post(
            "/evaluation-plans/upsert",
            json={
                "teacherAssignmentId": assignment.id,
                "academicTermId": term.id,
                "components": [{"componentId": component.id, "percentage": 70}],
            },
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_PLAN_WEIGHTS"
        assert body["error"]["extra"] == {"total": 70}

        missing = client.get(
            "/evaluation-plans", params={"teacherAssignmentId": assignment.id, "academicTermId": term.id}
        )
        assert missing.status_code == 404

    def test_upsert_replaces_weights(self, client, seed):
        year = seed.academic_year()
        term = seed.term(year)
        assignment = seed.assignment(year)
        comp_a = seed.component("A", "Quices")
        comp_b = seed.component("B", "Examenes")
        comp_c = seed.component("C", "Tareas")
        url = "/evaluation-plans/upsert"
        base = {"teacherAssignmentId": assignment.id, "academicTermId": term.id}

        first = client.post(
            url,
            json={
                **base,
                "components": [
                    {"componentId": comp_a.id, "percentage": 60},
                    {"componentId": comp_b.id, "percentage": 40},
                ],
            },
        )
        second = client.post(
            url,
            json={
                **base,
                "components": [
                    {"componentId": comp_b.id, "percentage": 50},
                    {"componentId": comp_c.id, "percentage": 50},
                ],
            },
        )

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]

        plan = client.get("/evaluation-plans", params=base).json()
        assert [(c["componentId"], c["percentage"]) for c in plan["components"]] == [
            (comp_b.id, 50),
            (comp_c.id, 50),
        ]
        assert plan["components"][1]["component"]["name"] == "Tareas"

    def test_duplicate_component_is_malformed(self, client, seed):
        year = seed.academic_year()
        term = seed.term(year)
        assignment = seed.assignment(year)
        component = seed.component("A")

        response = client.post(
            "/evaluation-plans/upsert",
            json={
                "teacherAssignmentId": assignment.id,
                "academicTermId": term.id,
                "components": [
                    {"componentId": component.id, "percentage": 50},
                    {"componentId": component.id, "percentage": 50},
                ],
            },
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "DUPLICATE_PLAN_COMPONENT"

    def test_unknown_component_is_not_found(self, client, seed):
        year = seed.academic_year()
        term = seed.term(year)
        assignment = seed.assignment(year)

        response = client.post(
            "/evaluation-plans/upsert",
            json={
                "teacherAssignmentId": assignment.id,
                "academicTermId": term.id,
                "components": [{"componentId": "missing", "percentage": 100}],
            },
        )

        assert response.status_code == 404


class TestAcademicTerms:
    def test_years_and_terms(self, client):
        year = client.post("/academic-terms/years", json={"institutionId": INSTITUTION_ID, "year": 2025})
        assert year.status_code == 201
        year_id = year.json()["id"]

        duplicate = client.post("/academic-terms/years", json={"institutionId": INSTITUTION_ID, "year": 2025})
        assert duplicate.status_code == 409

        for order, weight in ((2, 50), (1, 50)):
            response = client.post(
                "/academic-terms",
                json={
                    "academicYearId": year_id,
                    "name": f"Periodo {order}",
                    "order": order,
                    "weightPercentage": weight,
                },
            )
            assert response.status_code == 201
            assert response.json()["type"] == "PERIOD"

        terms = client.get("/academic-terms", params={"academicYearId": year_id}).json()
        assert [t["order"] for t in terms] == [1, 2]

        years = client.get("/academic-terms/years", params={"institutionId": INSTITUTION_ID}).json()
        assert [y["year"] for y in years] == [2025]

    def test_validate_weights(self, client, seed):
        year = seed.academic_year()
        first = seed.term(year, "Periodo 1", order=1, weight=60)
        seed.term(year, "Periodo 2", order=2, weight=30)

        invalid = client.get("/academic-terms/validate-weights", params={"academicYearId": year.id})
        assert invalid.status_code == 400
        assert invalid.json()["error"]["extra"] == {"total": 90}

        patched = client.patch(f"/academic-terms/{first.id}", json={"weightPercentage": 70})
        assert patched.status_code == 200
        assert patched.json()["weightPercentage"] == 70
        assert patched.json()["name"] == "Periodo 1"

        valid = client.get("/academic-terms/validate-weights", params={"academicYearId": year.id})
        assert valid.status_code == 200
        assert valid.json() == {"valid": True, "total": 100}

    def test_delete_term(self, client, seed):
        year = seed.academic_year()
        term = seed.term(year)

        assert client.delete(f"/academic-terms/{term.id}").status_code == 204
        assert client.delete(f"/academic-terms/{term.id}").status_code == 404
        assert client.get("/academic-terms", params={"academicYearId": year.id}).json() == []

    def test_term_on_unknown_year(self, client):
        response = client.post(
            "/academic-terms",
            json={"academicYearId": "missing", "name": "P1", "order": 1, "weightPercentage": 25},
        )
        assert response.status_code == 404


class TestEvaluationComponents:
    def _create(self, client, code, name, parent_id=None):
        payload = {"institutionId": INSTITUTION_ID, "code": code, "name": name}
        if parent_id:
            payload["parentId"] = parent_id
        return client.post("/evaluation-components", json=payload)

    def test_code_is_unique_per_institution(self, client):
        assert self._create(client, "EX", "Examenes").status_code == 201
        assert self._create(client, "EX", "Otro").status_code == 409

    def test_list_and_hierarchy(self, client):
        root = self._create(client, "SAB", "Saber").json()
        child = self._create(client, "QZ", "Quices", parent_id=root["id"]).json()
        self._create(client, "QZO", "Quices orales", parent_id=child["id"])

        listed = client.get("/evaluation-components", params={"institutionId": INSTITUTION_ID}).json()
        assert [c["name"] for c in listed] == ["Quices", "Quices orales", "Saber"]
        assert listed[2]["children"][0]["code"] == "QZ"

        tree = client.get("/evaluation-components/hierarchy", params={"institutionId": INSTITUTION_ID}).json()
        assert len(tree) == 1
        assert tree[0]["code"] == "SAB"
        assert tree[0]["children"][0]["children"][0]["code"] == "QZO"

    def test_update_and_delete(self, client):
        component = self._create(client, "EX", "Examenes").json()

        updated = client.patch(f"/evaluation-components/{component['id']}", json={"name": "Evaluaciones"})
        assert updated.json()["name"] == "Evaluaciones"

        cycle = client.patch(f"/evaluation-components/{component['id']}", json={"parentId": component["id"]})
        assert cycle.status_code == 400

        assert client.delete(f"/evaluation-components/{component['id']}").status_code == 204
        assert client.patch(f"/evaluation-components/{component['id']}", json={"name": "x"}).status_code == 404

    def test_component_in_use_cannot_be_deleted(self, client, graded_setup):
        response = client.delete(f"/evaluation-components/{graded_setup['comp_a'].id}")
        assert response.status_code == 409

    def test_rename_refreshes_cached_term_grades(self, app, client, seed, graded_setup):
        s = graded_setup
        cache = TermGradeCache(enabled=True)
        app.dependency_overrides[get_term_cache] = lambda: cache
        seed.grade(s["enrollment"], s["activity_a"], 4.0)
        params = {
            "studentEnrollmentId": s["enrollment"].id,
            "teacherAssignmentId": s["assignment"].id,
            "academicTermId": s["term"].id,
        }

        before = client.get("/student-grades/term-grade", params=params).json()
        client.patch(f"/evaluation-components/{s['comp_a'].id}", json={"name": "Talleres"})
        after = client.get("/student-grades/term-grade", params=params).json()

        assert [c["name"] for c in before["components"]] == ["Quices", "Examenes"]
        assert [c["name"] for c in after["components"]] == ["Talleres", "Examenes"]


class TestEvaluativeActivities:
    def test_create_and_filter(self, client, graded_setup):
        s = graded_setup
        response = client.post(
            "/evaluative-activities",
            json={
                "teacherAssignmentId": s["assignment"].id,
                "academicTermId": s["term"].id,
                "evaluationPlanId": s["plan"].id,
                "componentId": s["comp_b"].id,
                "name": "Final",
                "dueDate": "2025-05-30",
            },
        )
        assert response.status_code == 201
        assert response.json()["dueDate"] == "2025-05-30"

        listed = client.get("/evaluative-activities", params={"componentId": s["comp_b"].id}).json()
        assert sorted(a["name"] for a in listed) == ["Final", "Parcial"]

    def test_plan_must_match_assignment_and_term(self, client, seed, graded_setup):
        s = graded_setup
        other_term = seed.term(s["year"], "Periodo 2", order=2)

        response = client.post(
            "/evaluative-activities",
            json={
                "teacherAssignmentId": s["assignment"].id,
                "academicTermId": other_term.id,
                "evaluationPlanId": s["plan"].id,
                "componentId": s["comp_a"].id,
                "name": "Quiz",
            },
        )
        assert response.status_code == 400


class TestPerformanceScale:
    def test_upsert_by_institution_and_level(self, client):
        url = "/performance-scale/upsert"
        first = client.post(url, json={"institutionId": INSTITUTION_ID, "level": "ALTO", "minScore": 4.0, "maxScore": 4.5})
        second = client.post(url, json={"institutionId": INSTITUTION_ID, "level": "ALTO", "minScore": 4.0, "maxScore": 4.4})

        assert first.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        bands = client.get("/performance-scale", params={"institutionId": INSTITUTION_ID}).json()
        assert [(b["level"], b["maxScore"]) for b in bands] == [("ALTO", 4.4)]

    def test_min_above_max_is_rejected(self, client):
        response = client.post(
            "/performance-scale/upsert",
            json={"institutionId": INSTITUTION_ID, "level": "BAJO", "minScore": 3.0, "maxScore": 2.0},
        )
        assert response.status_code == 422

    def test_unknown_level_is_rejected(self, client):
        response = client.post(
            "/performance-scale/upsert",
            json={"institutionId": INSTITUTION_ID, "level": "EXCELENTE", "minScore": 4.0, "maxScore": 5.0},
        )
        assert response.status_code == 422
