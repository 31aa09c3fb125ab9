"""
Tests: report submission and the role views.

Covers the submission endpoints (defaults, validation, tagged kinds), the
round-trip of submitted fields, every list/grouped view and the admin-only
delete.
"""

import pytest


# ── Helpers ──────────────────────────────────────────────────────────────────


LECTURER_REPORT = {
    "facultyName": "FICT",
    "className": "BSc IT Year 2",
    "weekOfReporting": "Week 3",
    "dateOfLecture": "2024-03-12",
    "courseName": "Databases",
    "courseCode": "DB101",
    "lecturerName": "Dr. Molefe",
    "actualStudentsPresent": 28,
    "totalRegisteredStudents": 30,
    "venue": "Room 201",
    "scheduledTime": "08:00 - 10:00",
    "topicTaught": "Normalisation",
    "learningOutcomes": "3NF",
    "recommendations": "More lab time",
    "stream": "IT",
    "programType": "degree",
}


def _submit(client, endpoint, **overrides):
    payload = {**LECTURER_REPORT, **overrides}
    return client.post(f"/api/reports/{endpoint}", json=payload)


def _submit_ok(client, endpoint, **overrides):
    res = _submit(client, endpoint, **overrides)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["report"]


# ═════════════════════════════════════════════════════════════════════════════
# Submission
# ═════════════════════════════════════════════════════════════════════════════


class TestSubmission:
    def test_lecturer_report_is_stamped(self, client):
        res = _submit(client, "lecturer")
        assert res.status_code == 201
        body = res.get_json()
        assert body["success"] is True
        report = body["report"]
        assert isinstance(report["id"], int)
        assert report["type"] == "lecturer"
        assert report["status"] == "submitted"
        assert report["isSubmittedToPL"] is False
        assert report["isPRLReport"] is False
        assert report["createdAt"] and report["updatedAt"]

    def test_round_trip_preserves_submitted_fields(self, client):
        extra = {"challengesFaced": "Projector broken", "attachments": ["a.pdf"]}
        report = _submit_ok(client, "lecturer", **extra)

        fetched = client.get(f"/api/reports/{report['id']}").get_json()["report"]
        for key, value in {**LECTURER_REPORT, **extra}.items():
            assert fetched[key] == value, key

    def test_server_fields_in_payload_are_ignored(self, client):
        report = _submit_ok(client, "lecturer", status="pl_reviewed", isSubmittedToPL=True, id=999)
        assert report["status"] == "submitted"
        assert report["isSubmittedToPL"] is False
        assert report["id"] != 999

    def test_stream_and_program_default(self, client):
        payload = {k: v for k, v in LECTURER_REPORT.items() if k not in ("stream", "programType")}
        res = client.post("/api/reports/lecturer", json=payload)
        report = res.get_json()["report"]
        assert report["stream"] == "IT"
        assert report["programType"] == "degree"

    def test_empty_stream_defaults(self, client):
        report = _submit_ok(client, "student", stream="", studentName="Thabo")
        assert report["stream"] == "IT"

    def test_student_endpoint_accepts_rating(self, client):
        report = _submit_ok(client, "student", type="rating", classRating=4, lecturerRating=5)
        assert report["type"] == "rating"
        assert report["isRating"] is True

    def test_student_rating_flag_resolves_to_rating(self, client):
        report = _submit_ok(client, "student", isRating=True, classRating=3)
        assert report["type"] == "rating"

    def test_prl_endpoint_forces_prl_kind(self, client):
        report = _submit_ok(client, "prl", type="lecturer", courseCode=None)
        assert report["type"] == "prl"
        assert report["isPRLReport"] is True

    def test_prl_report_does_not_need_course_code(self, client):
        res = client.post("/api/reports/prl", json={"stream": "CS", "programType": "diploma",
                                                    "recommendations": "Hire a tutor"})
        assert res.status_code == 201

    def test_lecturer_endpoint_rejects_prl_flag(self, client):
        res = _submit(client, "lecturer", isPRLReport=True)
        assert res.status_code == 400
        assert res.get_json()["success"] is False

    def test_student_endpoint_rejects_lecturer_type(self, client):
        res = _submit(client, "student", type="lecturer")
        assert res.status_code == 400

    def test_course_code_required(self, client):
        res = _submit(client, "lecturer", courseCode="")
        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert body["details"]["courseCode"] == "required"

    @pytest.mark.parametrize("overrides,field", [
        ({"actualStudentsPresent": -1}, "actualStudentsPresent"),
        ({"actualStudentsPresent": 31}, "actualStudentsPresent"),
        ({"totalRegisteredStudents": "many"}, "totalRegisteredStudents"),
        ({"rating": 11}, "rating"),
        ({"studentRating": 11}, "studentRating"),
        ({"rating": 0}, "rating"),
        ({"numberOfStudentsPresent": 40, "actualNumberOfStudents": 35}, "numberOfStudentsPresent"),
    ])
    def test_field_validation(self, client, overrides, field):
        res = _submit(client, "lecturer", **overrides)
        assert res.status_code == 400
        assert field in res.get_json()["details"]

    def test_lecturer_ratings_use_ten_point_scale(self, client):
        report = _submit_ok(client, "lecturer", rating=4, studentRating=8)
        fetched = client.get(f"/api/reports/{report['id']}").get_json()["report"]
        assert fetched["rating"] == 4
        assert fetched["studentRating"] == 8

    @pytest.mark.parametrize("field", ["rating", "classRating", "lecturerRating"])
    def test_student_ratings_use_five_point_scale(self, client, field):
        res = _submit(client, "student", type="rating", **{field: 8})
        assert res.status_code == 400
        assert res.get_json()["details"][field] == "must be between 1 and 5"

    def test_unknown_stream_rejected(self, client):
        res = _submit(client, "lecturer", stream="EE")
        assert res.status_code == 400
        assert "stream" in res.get_json()["details"]

    def test_unknown_program_type_rejected(self, client):
        res = _submit(client, "lecturer", programType="masters")
        assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# Role views
# ═════════════════════════════════════════════════════════════════════════════


class TestViews:
    def test_db101_lecturer_report_in_list_and_grouped(self, client, course):
        report = _submit_ok(client, "lecturer")

        res = client.get("/api/reports/lecturer?programType=degree")
        body = res.get_json()
        assert body["success"] is True
        assert [r["id"] for r in body["data"]] == [report["id"]]
        assert body["total"] == 1

        grouped = client.get("/api/reports/grouped?stream=IT&programType=degree").get_json()
        assert [r["courseCode"] for r in grouped["lecturer"]] == ["DB101"]
        assert grouped["counts"] == {"lecturer": 1, "student": 0, "prl": 0, "ratings": 0}

    def test_lecturer_name_filter(self, client):
        _submit_ok(client, "lecturer")
        _submit_ok(client, "lecturer", lecturerName="Ms. Dube")
        data = client.get("/api/reports/lecturer?lecturerName=Ms.%20Dube").get_json()["data"]
        assert [r["lecturerName"] for r in data] == ["Ms. Dube"]

    def test_student_view_lists_students_and_ratings(self, client):
        _submit_ok(client, "student", studentName="Thabo")
        _submit_ok(client, "student", type="rating", classRating=4)
        _submit_ok(client, "lecturer")
        data = client.get("/api/reports/student?programType=degree").get_json()["data"]
        assert sorted(r["type"] for r in data) == ["rating", "student"]

    def test_program_type_scoping(self, client):
        _submit_ok(client, "lecturer", programType="diploma")
        assert client.get("/api/reports/lecturer?programType=degree").get_json()["total"] == 0
        assert client.get("/api/reports/lecturer?programType=all").get_json()["total"] == 1
        assert client.get("/api/reports/lecturer").get_json()["total"] == 1

    def test_prl_view_returns_whole_stream(self, client):
        _submit_ok(client, "lecturer")
        _submit_ok(client, "student")
        _submit_ok(client, "prl", courseCode=None)
        _submit_ok(client, "lecturer", stream="CS")
        body = client.get("/api/reports/prl?stream=IT&programType=degree").get_json()
        assert body["total"] == 3

    def test_prl_specific(self, client):
        _submit_ok(client, "lecturer")
        prl = _submit_ok(client, "prl")
        data = client.get("/api/reports/prl-specific?stream=IT&programType=degree").get_json()["data"]
        assert [r["id"] for r in data] == [prl["id"]]

    def test_detailed_and_all(self, client):
        _submit_ok(client, "lecturer")
        _submit_ok(client, "student")
        _submit_ok(client, "student", type="rating")
        assert client.get("/api/reports/detailed?programType=degree").get_json()["total"] == 3

        body = client.get("/api/reports/all?stream=IT&programType=degree").get_json()
        assert body["total"] == 3
        assert set(body["data"]) == {"lecturer", "student", "prl", "ratings"}
        assert len(body["data"]["ratings"]) == 1

    def test_status_filter_accepts_alias(self, client):
        _submit_ok(client, "lecturer")
        assert client.get("/api/reports/lecturer?status=pending").get_json()["total"] == 1
        assert client.get("/api/reports/lecturer?status=reviewed").get_json()["total"] == 0

    def test_by_courses(self, client):
        _submit_ok(client, "lecturer")
        _submit_ok(client, "lecturer", courseCode="OS201")
        res = client.post("/api/reports/by-courses", json={"courseCodes": ["OS201"], "programType": "degree"})
        assert [r["courseCode"] for r in res.get_json()["data"]] == ["OS201"]

        res = client.post("/api/reports/by-courses", json={"courseCodes": "OS201"})
        assert res.status_code == 400

    def test_assigned_course_reports(self, client, course):
        _submit_ok(client, "lecturer")
        _submit_ok(client, "lecturer", courseCode="OS201")
        body = client.get("/api/reports/prl/assigned-courses?stream=IT&programType=degree").get_json()
        assert body["assignedCourses"] == 1
        assert body["totalReports"] == 1
        assert body["data"]["lecturer"][0]["courseCode"] == "DB101"

    def test_assigned_course_reports_without_courses_is_empty(self, client):
        _submit_ok(client, "lecturer")
        body = client.get("/api/reports/prl/assigned-courses?stream=IT&programType=degree").get_json()
        assert body["totalReports"] == 0

    def test_prl_dashboard(self, client, course):
        lecturer = _submit_ok(client, "lecturer")
        prl = _submit_ok(client, "prl", courseCode=None)
        client.post("/api/reports/group/submit",
                    json={"stream": "IT", "programType": "degree", "selectedReports": [prl["id"]]})

        data = client.get("/api/prl/dashboard?stream=IT&programType=degree").get_json()["data"]
        assert [r["id"] for r in data["allReports"]["lecturer"]] == [lecturer["id"]]
        assert data["allReports"]["prl"] == []
        assert [r["id"] for r in data["submittedToPLReports"]] == [prl["id"]]
        assert data["statistics"] == {
            "totalAssignedCourses": 1,
            "totalAllReports": 2,
            "totalAssignedCourseReports": 1,
            "totalSubmittedToPL": 1,
        }


# ═════════════════════════════════════════════════════════════════════════════
# Single report: get / update / delete
# ═════════════════════════════════════════════════════════════════════════════


class TestSingleReport:
    def test_get_missing_report(self, client):
        res = client.get("/api/reports/4242")
        assert res.status_code == 404
        assert res.get_json() == {"success": False, "error": "Report not found", "code": "ERR_NOT_FOUND"}

    def test_update_content(self, client):
        report = _submit_ok(client, "lecturer")
        res = client.put(f"/api/reports/{report['id']}", json={"topicTaught": "Indexes", "notes": "x"})
        assert res.status_code == 200
        updated = res.get_json()["report"]
        assert updated["topicTaught"] == "Indexes"
        assert updated["notes"] == "x"
        assert updated["courseCode"] == "DB101"

    def test_update_accepts_unchanged_workflow_fields(self, client):
        report = _submit_ok(client, "lecturer")
        res = client.put(f"/api/reports/{report['id']}", json={**report, "venue": "Lab 2"})
        assert res.status_code == 200
        assert res.get_json()["report"]["venue"] == "Lab 2"

    def test_update_rejects_workflow_fields(self, client):
        report = _submit_ok(client, "lecturer")
        res = client.put(f"/api/reports/{report['id']}", json={"status": "pl_reviewed", "stream": "CS"})
        assert res.status_code == 400
        assert set(res.get_json()["details"]) == {"status", "stream"}

    def test_update_validates_merged_counts(self, client):
        report = _submit_ok(client, "lecturer")
        res = client.put(f"/api/reports/{report['id']}", json={"actualStudentsPresent": 45})
        assert res.status_code == 400

    def test_delete_requires_admin(self, client):
        report = _submit_ok(client, "lecturer")
        res = client.delete(f"/api/reports/{report['id']}", headers={"X-User-Role": "pl"})
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

        res = client.delete(f"/api/reports/{report['id']}", headers={"X-User-Role": "admin"})
        assert res.status_code == 200
        assert client.get(f"/api/reports/{report['id']}").status_code == 404

    def test_unknown_route_is_json_404(self, client):
        res = client.get("/api/nothing-here")
        assert res.status_code == 404
        assert res.get_json()["success"] is False
