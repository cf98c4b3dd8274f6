from __future__ import annotations

from fakes import make_staff


def test_generate_returns_draft_rows(manager_client, staff_repo):
    staff_repo.profiles["S1"] = make_staff("S1")

    resp = manager_client.post("/api/payroll/generate", json={"year": 2025, "month": 11})

    assert resp.status_code == 200
    body = resp.get_json()
    assert (body["year"], body["month"]) == (2025, 11)
    assert [r["staffId"] for r in body["rows"]] == ["S1"]
    assert body["rows"][0]["earnings"]["basePay"] == "30000.00"


def test_generate_rejects_bad_period(manager_client):
    resp = manager_client.post("/api/payroll/generate", json={"year": 2025, "month": 13})
    assert resp.status_code == 400


def test_payroll_is_manager_only(staff_client):
    assert staff_client.post("/api/payroll/generate", json={"year": 2025, "month": 11}).status_code == 403
    assert staff_client.get("/api/payroll/export?year=2025&month=11").status_code == 403


def test_finalize_records_who_finalized(manager_client, staff_repo, payroll_repo, batches):
    staff_repo.profiles["S1"] = make_staff("S1")

    resp = manager_client.post("/api/payroll/finalize", json={"year": 2025, "month": 11, "staffIds": ["S1"]})

    assert resp.status_code == 200
    assert resp.get_json()["finalized"] == ["S1"]
    assert payroll_repo.get_payslip("S1_2025_11").finalized_by == "u-manager"
    assert batches.batches[-1].committed

    again = manager_client.post("/api/payroll/finalize", json={"year": 2025, "month": 11, "staffIds": ["S1"]})
    assert again.get_json()["skipped"] == ["S1"]


def test_finalize_rejects_non_list_selection(manager_client):
    resp = manager_client.post("/api/payroll/finalize", json={"year": 2025, "month": 11, "staffIds": "S1"})
    assert resp.status_code == 400


def test_finalize_with_empty_selection_finalizes_nobody(manager_client, staff_repo, payroll_repo, batches):
    staff_repo.profiles["S1"] = make_staff("S1")

    resp = manager_client.post("/api/payroll/finalize", json={"year": 2025, "month": 11, "staffIds": []})
    missing = manager_client.post("/api/payroll/finalize", json={"year": 2025, "month": 11})

    assert resp.status_code == 400
    assert "at least one staff member" in resp.get_json()["message"]
    assert missing.status_code == 400
    assert payroll_repo.get_payslip("S1_2025_11") is None
    assert batches.batches == []


def test_export_downloads_register(manager_client, staff_repo):
    staff_repo.profiles["S1"] = make_staff("S1")

    resp = manager_client.get("/api/payroll/export?year=2025&month=11&format=xlsx")

    assert resp.status_code == 200
    assert resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "payroll_2025_11.xlsx" in resp.headers["Content-Disposition"]


def test_advance_eligibility_endpoint(manager_client, staff_repo):
    staff_repo.profiles["S1"] = make_staff("S1")

    resp = manager_client.get("/api/advances/eligibility?staff_id=S1")

    assert resp.status_code == 200
    assert resp.get_json()["maxAdvance"] == "15000.00"
    assert manager_client.get("/api/advances/eligibility").status_code == 400


def test_advance_request_endpoint(manager_client, staff_repo, payroll_repo):
    staff_repo.profiles["S1"] = make_staff("S1")

    resp = manager_client.post("/api/advances", json={"staffId": "S1", "amount": 1000})
    assert resp.status_code == 201
    assert resp.get_json()["advanceId"] in payroll_repo.advances

    too_much = manager_client.post("/api/advances", json={"staffId": "S1", "amount": 99999})
    assert too_much.status_code == 400
