"""
Tests: report classification, grouping, summary and the status machine.

Pure functions, no HTTP. Records are plain camelCase dicts, including the
legacy flag combinations found in the old JSON store.
"""

import pytest

from faculty_reporting.services import report_workflow as wf


def _rec(rid, type_=None, stream="IT", program="degree", **flags):
    rec = {"id": rid, "stream": stream, "programType": program}
    if type_ is not None:
        rec["type"] = type_
    rec.update(flags)
    return rec


MIXED = [
    _rec(1, "lecturer"),
    _rec(2, "student"),
    _rec(3, "student", isRating=True),
    _rec(4, "prl", isPRLReport=True),
    _rec(5, "lecturer", isPRLReport=True),  # legacy: PRL report filed as lecturer
    _rec(6, "rating"),
    _rec(7, "lecturer", stream="CS"),
    _rec(8, "student", program="diploma"),
]


# ═════════════════════════════════════════════════════════════════════════════
# Classification
# ═════════════════════════════════════════════════════════════════════════════


class TestClassify:
    @pytest.mark.parametrize("record,bucket", [
        (_rec(1, "lecturer"), "lecturer"),
        (_rec(1, "student"), "student"),
        (_rec(1, "student", isRating=True), "ratings"),
        (_rec(1, "lecturer", isPRLReport=True), "prl"),
        (_rec(1, "prl"), "prl"),
        (_rec(1, "rating"), "ratings"),
        (_rec(1, isPRLReport=True), "prl"),
    ])
    def test_bucket_predicates(self, record, bucket):
        assert wf.classify(record) == bucket

    def test_unknown_type_matches_no_bucket(self):
        assert wf.classify(_rec(1, "memo")) is None
        assert wf.resolve_kind(_rec(1)) is None

    def test_resolve_kind_maps_bucket_to_kind(self):
        assert wf.resolve_kind(_rec(1, "student", isRating=True)) == "rating"
        assert wf.resolve_kind(_rec(1, "lecturer", isPRLReport=True)) == "prl"

    def test_conflicting_flags(self):
        assert wf.conflicting_flags({"isRating": True}, "student") == ["isRating"]
        assert wf.conflicting_flags({"isPRLReport": True, "isRating": True}, "prl") == ["isRating"]
        assert wf.conflicting_flags({"isRating": True}, "rating") == []


# ═════════════════════════════════════════════════════════════════════════════
# Filtering & grouping
# ═════════════════════════════════════════════════════════════════════════════


class TestGrouping:
    def test_buckets_partition_the_filtered_set(self):
        filtered = wf.filter_reports(MIXED, stream="IT", program_type="degree")
        grouped = wf.group_reports(filtered)

        ids = [r["id"] for bucket in wf.BUCKETS for r in grouped[bucket]]
        assert sorted(ids) == sorted(r["id"] for r in filtered)
        assert len(ids) == len(set(ids))

    def test_bucket_contents(self):
        grouped = wf.group_reports(wf.filter_reports(MIXED, stream="IT", program_type="degree"))
        assert [r["id"] for r in grouped["lecturer"]] == [1]
        assert [r["id"] for r in grouped["student"]] == [2]
        assert [r["id"] for r in grouped["prl"]] == [4, 5]
        assert [r["id"] for r in grouped["ratings"]] == [3, 6]

    def test_always_four_buckets(self):
        assert set(wf.group_reports([])) == {"lecturer", "student", "prl", "ratings"}

    def test_filter_none_means_any(self):
        assert len(wf.filter_reports(MIXED)) == len(MIXED)

    def test_filter_by_kind(self):
        out = wf.filter_reports(MIXED, kinds=["rating"])
        assert [r["id"] for r in out] == [3, 6]

    def test_bucket_counts(self):
        grouped = wf.group_reports(MIXED)
        assert wf.bucket_counts(grouped) == {"lecturer": 2, "student": 2, "prl": 2, "ratings": 2}


class TestSummarize:
    def test_empty_input_gives_zero_counts(self):
        summary = wf.summarize([])
        assert summary == {
            "totalReports": 0,
            "studentReports": 0,
            "lecturerReports": 0,
            "ratings": 0,
            "prlReports": 0,
            "byStream": {},
            "byStatus": {},
        }

    def test_breakdowns(self):
        records = [
            {**_rec(1, "lecturer"), "status": "submitted"},
            {**_rec(2, "student", stream="CS"), "status": "pending"},
            {**_rec(3, "prl", isPRLReport=True), "status": "submitted_to_pl"},
        ]
        summary = wf.summarize(records)
        assert summary["totalReports"] == 3
        assert summary["lecturerReports"] == 1
        assert summary["prlReports"] == 1
        assert summary["byStream"] == {"IT": 2, "CS": 1}
        assert summary["byStatus"] == {"submitted": 2, "submitted_to_pl": 1}


# ═════════════════════════════════════════════════════════════════════════════
# Status machine
# ═════════════════════════════════════════════════════════════════════════════


class TestTransitions:
    @pytest.mark.parametrize("value,expected", [
        ("submitted", "submitted"),
        ("PENDING", "submitted"),
        ("approved", "pl_reviewed"),
        ("completed", "pl_reviewed"),
        ("bogus", None),
        (None, None),
    ])
    def test_normalize_status(self, value, expected):
        assert wf.normalize_status(value) == expected

    def test_review_from_submitted(self):
        result = wf.validate_transition("submitted", "review")
        assert result == {"valid": True, "from": "submitted", "to": "reviewed", "reason": None}

    def test_pl_review_requires_escalation(self):
        result = wf.validate_transition("submitted", "pl_review")
        assert result["valid"] is False
        assert "submitted" in result["reason"]

    def test_no_backwards_transition(self):
        assert wf.validate_transition("submitted_to_pl", "review")["valid"] is False
        assert wf.validate_transition("pl_reviewed", "submit_to_pl")["valid"] is False

    def test_repeat_review_is_allowed(self):
        assert wf.validate_transition("reviewed", "review")["valid"] is True
        assert wf.validate_transition("pl_reviewed", "pl_review")["valid"] is True

    def test_permissive_mode_accepts_any_order(self):
        result = wf.validate_transition("submitted", "pl_review", strict=False)
        assert result["valid"] is True
        assert result["to"] == "pl_reviewed"

    def test_unknown_action(self):
        result = wf.validate_transition("submitted", "archive", strict=False)
        assert result["valid"] is False
        assert "Unknown action" in result["reason"]

    def test_available_actions(self):
        assert wf.available_actions("submitted") == ["review", "submit_to_pl"]
        assert wf.available_actions("submitted_to_pl") == ["pl_review"]


class TestCollectSelectedIds:
    def test_list(self):
        assert wf.collect_selected_ids([3, 1, 2]) == [3, 1, 2]

    def test_bucket_object_in_fixed_order(self):
        selected = {"ratings": [9], "prl": [7], "student": [1], "lecturer": [4], "other": [99]}
        assert wf.collect_selected_ids(selected) == [1, 4, 7, 9]

    def test_empty_and_invalid(self):
        assert wf.collect_selected_ids(None) == []
        assert wf.collect_selected_ids({}) == []
        assert wf.collect_selected_ids({"student": "1"}) == []
