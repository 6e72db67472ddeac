"""Tests for check-in/out, attendance views and manager corrections."""

import pytest

from app.core.time_utils import today_iso


@pytest.fixture()
def assigned_worker(worker, site, assign):
    assign(worker, site)
    return worker


def test_check_in_records_today(client, db, assigned_worker, site):
    response = client.post("/api/v1/attendance/check-in", headers=assigned_worker["headers"], json={
        "site_id": site["id"],
        "location": {"latitude": 37.5, "longitude": 127.03, "accuracy": 12},
    })

    assert response.status_code == 201
    body = response.json()
    assert body["work_date"] == today_iso()
    assert body["status"] == "present"
    assert body["check_in_time"]
    location = db.rows("attendance_locations")[0]
    assert location["check_type"] == "in"
    assert location["attendance_record_id"] == body["id"]


def test_double_check_in_is_409(client, assigned_worker, site):
    client.post("/api/v1/attendance/check-in", headers=assigned_worker["headers"], json={"site_id": site["id"]})
    response = client.post("/api/v1/attendance/check-in", headers=assigned_worker["headers"], json={"site_id": site["id"]})
    assert response.status_code == 409
    assert response.json()["detail"] == "Already checked in today"


def test_check_in_requires_assignment(client, worker, site):
    response = client.post("/api/v1/attendance/check-in", headers=worker["headers"], json={"site_id": site["id"]})
    assert response.status_code == 403


def test_check_out_then_again_is_400(client, assigned_worker, site):
    record = client.post("/api/v1/attendance/check-in", headers=assigned_worker["headers"], json={"site_id": site["id"]}).json()

    out = client.post("/api/v1/attendance/check-out", headers=assigned_worker["headers"], json={"attendance_id": record["id"]})
    assert out.status_code == 200
    assert out.json()["check_out_time"]
    assert out.json()["work_hours"] >= 0

    again = client.post("/api/v1/attendance/check-out", headers=assigned_worker["headers"], json={"attendance_id": record["id"]})
    assert again.status_code == 400
    assert again.json()["detail"] == "Already checked out"


def test_cannot_check_out_someone_else(client, db, make_user, site):
    other = make_user("worker")
    record = db.add("attendance_records", user_id="someone", site_id=site["id"], work_date=today_iso(), check_in_time="08:00:00")
    response = client.post("/api/v1/attendance/check-out", headers=other["headers"], json={"attendance_id": record["id"]})
    assert response.status_code == 404


def test_today_scoped_by_role(client, db, assigned_worker, manager, site):
    """Workers see their own record for today; managers see the whole site."""
    db.add("attendance_records", user_id=assigned_worker["id"], site_id=site["id"], work_date=today_iso(), check_in_time="08:00:00")
    db.add("attendance_records", user_id="another-user", site_id=site["id"], work_date=today_iso(), check_in_time="07:30:00")

    mine = client.get("/api/v1/attendance/today", headers=assigned_worker["headers"])
    assert len(mine.json()) == 1

    everyone = client.get(f"/api/v1/attendance/today?site_id={site['id']}", headers=manager["headers"])
    assert [r["check_in_time"] for r in everyone.json()] == ["07:30:00", "08:00:00"]


def test_my_attendance_summary(client, db, worker, site):
    db.add("attendance_records", user_id=worker["id"], site_id=site["id"], work_date="2025-03-03",
           status="present", work_hours=9, overtime_hours=1, labor_hours=1.13)
    db.add("attendance_records", user_id=worker["id"], site_id=site["id"], work_date="2025-03-04",
           status="absent", work_hours=0, overtime_hours=0, labor_hours=0)

    response = client.get("/api/v1/attendance/me?start_date=2025-03-01&end_date=2025-03-31", headers=worker["headers"])

    assert response.status_code == 200
    summary = response.json()["summary"]
    assert summary["total_days"] == 2
    assert summary["total_hours"] == 9
    assert summary["total_overtime"] == 1
    assert summary["days_present"] == 1
    assert summary["days_absent"] == 1


def test_monthly_records_carry_date(client, db, worker, site):
    """Calendar rows expose `date` alongside work_date, oldest first."""
    db.add("attendance_records", user_id=worker["id"], site_id=site["id"], work_date="2025-03-20", check_in_time="08:00:00")
    db.add("attendance_records", user_id=worker["id"], site_id=site["id"], work_date="2025-03-02", check_in_time="08:00:00")
    db.add("attendance_records", user_id=worker["id"], site_id=site["id"], work_date="2025-04-01", check_in_time="08:00:00")

    response = client.get("/api/v1/attendance/monthly?year=2025&month=3", headers=worker["headers"])

    assert response.status_code == 200
    assert [r["date"] for r in response.json()] == ["2025-03-02", "2025-03-20"]


def test_monthly_bad_month(client, worker):
    response = client.get("/api/v1/attendance/monthly?year=2025&month=13", headers=worker["headers"])
    assert response.status_code == 400


def test_manager_correction_recomputes_hours(client, db, manager, site):
    record = db.add("attendance_records", user_id="w1", site_id=site["id"], work_date="2025-03-03", check_in_time="08:00:00")
    response = client.put(f"/api/v1/attendance/{record['id']}", headers=manager["headers"], json={"check_out_time": "18:00"})

    assert response.status_code == 200
    body = response.json()
    assert body["work_hours"] == 10
    assert body["overtime_hours"] == 2
    assert body["labor_hours"] == 1.25


def test_worker_cannot_correct_attendance(client, db, worker, site):
    record = db.add("attendance_records", user_id=worker["id"], site_id=site["id"], work_date="2025-03-03", check_in_time="08:00:00")
    response = client.put(f"/api/v1/attendance/{record['id']}", headers=worker["headers"], json={"check_out_time": "23:00"})
    assert response.status_code == 403


def test_bulk_entry_and_summary(client, manager, worker, site, assign):
    assign(manager, site, role="site_manager")
    bulk = client.post("/api/v1/attendance/bulk", headers=manager["headers"], json={
        "site_id": site["id"],
        "work_date": "2025-03-05",
        "workers": [
            {"user_id": worker["id"], "check_in_time": "22:00", "check_out_time": "06:00"},
            {"user_id": manager["id"], "check_in_time": "08:00", "check_out_time": "17:00"},
        ],
    })
    assert bulk.status_code == 201
    night_shift = next(r for r in bulk.json() if r["user_id"] == worker["id"])
    assert night_shift["work_hours"] == 8

    summary = client.get(
        f"/api/v1/attendance/summary?start_date=2025-03-01&end_date=2025-03-31&site_id={site['id']}",
        headers=manager["headers"],
    )
    assert summary.status_code == 200
    by_user = {s["user_id"]: s for s in summary.json()}
    assert by_user[worker["id"]]["full_name"] == "Kim Worker"
    assert by_user[manager["id"]]["total_hours"] == 9


def test_bulk_rejects_bad_time(client, manager, worker, site, assign):
    assign(manager, site, role="site_manager")
    response = client.post("/api/v1/attendance/bulk", headers=manager["headers"], json={
        "site_id": site["id"],
        "work_date": "2025-03-05",
        "workers": [{"user_id": worker["id"], "check_in_time": "25:00"}],
    })
    assert response.status_code == 422


def test_clearing_check_out_resets_hours(client, db, manager, site):
    record = db.add(
        "attendance_records", user_id="w1", site_id=site["id"], work_date="2025-03-03",
        check_in_time="08:00:00", check_out_time="17:00:00", work_hours=9.0, overtime_hours=1.0, labor_hours=1.12,
    )
    response = client.put(f"/api/v1/attendance/{record['id']}", headers=manager["headers"], json={"check_out_time": None})

    assert response.status_code == 200
    body = response.json()
    assert body["check_out_time"] is None
    assert (body["work_hours"], body["overtime_hours"], body["labor_hours"]) == (0, 0, 0)


def test_bulk_rejects_worker_listed_twice(client, db, manager, worker, site, assign):
    assign(manager, site, role="site_manager")
    response = client.post("/api/v1/attendance/bulk", headers=manager["headers"], json={
        "site_id": site["id"],
        "work_date": "2025-03-05",
        "workers": [
            {"user_id": worker["id"], "check_in_time": "08:00"},
            {"user_id": worker["id"], "check_in_time": "09:00"},
        ],
    })
    assert response.status_code == 409
    assert db.rows("attendance_records") == []


def test_bulk_rejects_existing_record(client, db, manager, worker, site, assign):
    assign(manager, site, role="site_manager")
    db.add("attendance_records", user_id=worker["id"], site_id=site["id"], work_date="2025-03-05", check_in_time="07:30:00")

    response = client.post("/api/v1/attendance/bulk", headers=manager["headers"], json={
        "site_id": site["id"],
        "work_date": "2025-03-05",
        "workers": [
            {"user_id": worker["id"], "check_in_time": "08:00"},
            {"user_id": manager["id"], "check_in_time": "08:00"},
        ],
    })
    assert response.status_code == 409
    assert worker["id"] in response.json()["detail"]
    assert len(db.rows("attendance_records")) == 1
