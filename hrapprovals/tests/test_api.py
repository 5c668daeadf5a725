"""
End-to-end tests through the HTTP API
"""
from datetime import date, timedelta

from fastapi import status

from hrapprovals.models.shift import ShiftAssignment, ShiftStatus
from hrapprovals.tests.helpers import REASON, auth_headers, future_range


def _create_leave(client, employee, days=3, offset=7, **extra):
    start, end = future_range(days, offset=offset)
    payload = {
        "leave_type": "PAID",
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "reason": REASON,
    }
    payload.update(extra)
    return client.post("/api/v1/leave-requests", json=payload, headers=auth_headers(employee))


def test_requires_bearer_token(client, org):
    response = client.get("/api/v1/leave-requests/my")
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    response = client.get("/api/v1/leave-requests/my", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_leave_request_approval_flow(client, org):
    response = _create_leave(client, org["alice"], approver_id=org["manager"].id)
    assert response.status_code == status.HTTP_201_CREATED
    created = response.json()
    assert created["status"] == "PENDING"
    assert created["number_of_days"] == 3
    request_id = created["id"]

    response = client.post(
        f"/api/v1/leave-requests/{request_id}/approve",
        json={"comment": "Have a good break"},
        headers=auth_headers(org["manager"]),
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "APPROVED"
    assert body["approved_by_id"] == org["manager"].id
    assert body["admin_comment"] == "Have a good break"

    response = client.post(
        f"/api/v1/leave-requests/{request_id}/approve", headers=auth_headers(org["senior"])
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    error = response.json()
    assert error["code"] == "invalid_state"
    assert "already approved" in error["detail"]

    response = client.get("/api/v1/balances/me", params={"date": created["start_date"]}, headers=auth_headers(org["alice"]))
    assert response.status_code == status.HTTP_200_OK
    assert float(response.json()["remaining_days"]) == 17.0


def test_leave_validation_errors_are_400(client, org):
    response = _create_leave(client, org["alice"], reason="short")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "validation_error"

    yesterday = (date.today() - timedelta(days=2)).isoformat()
    response = client.post(
        "/api/v1/leave-requests",
        json={"leave_type": "PAID", "start_date": yesterday, "end_date": yesterday, "reason": REASON},
        headers=auth_headers(org["alice"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_overlapping_leave_is_409(client, org):
    first = _create_leave(client, org["alice"]).json()
    response = client.post(
        "/api/v1/leave-requests",
        json={
            "leave_type": "SICK",
            "start_date": first["end_date"],
            "end_date": first["end_date"],
            "reason": REASON,
        },
        headers=auth_headers(org["alice"]),
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "leave_overlap"


def test_unauthorized_approver_is_403(client, org):
    request_id = _create_leave(client, org["alice"]).json()["id"]
    response = client.post(f"/api/v1/leave-requests/{request_id}/approve", headers=auth_headers(org["bob"]))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_reject_and_list_my_requests(client, org):
    request_id = _create_leave(client, org["alice"]).json()["id"]
    response = client.post(
        f"/api/v1/leave-requests/{request_id}/reject",
        json={"reason": "Cover not available"},
        headers=auth_headers(org["manager"]),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["rejection_reason"] == "Cover not available"

    response = client.get("/api/v1/leave-requests/my", params={"status": "REJECTED"}, headers=auth_headers(org["alice"]))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["total"] == 1


def test_draft_endpoints(client, org):
    draft = _create_leave(client, org["alice"], as_draft=True).json()
    assert draft["status"] == "DRAFT"

    start, end = future_range(1, offset=30)
    response = client.patch(
        f"/api/v1/leave-requests/{draft['id']}",
        json={"start_date": start.isoformat(), "end_date": end.isoformat()},
        headers=auth_headers(org["alice"]),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["number_of_days"] == 1

    response = client.post(f"/api/v1/leave-requests/{draft['id']}/submit", headers=auth_headers(org["alice"]))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "PENDING"

    response = client.delete(f"/api/v1/leave-requests/{draft['id']}", headers=auth_headers(org["alice"]))
    assert response.status_code == status.HTTP_409_CONFLICT


def test_pending_approvals_and_authority(client, org):
    _create_leave(client, org["alice"])
    client.post(
        "/api/v1/expenses",
        json={"expense_date": "2030-01-10", "category": "Travel", "amount": "30.00"},
        headers=auth_headers(org["bob"]),
    )

    response = client.get("/api/v1/approvals/pending", headers=auth_headers(org["manager"]))
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert len(body["leaves"]) == 1
    assert len(body["expenses"]) == 1

    response = client.get("/api/v1/approvals/pending", headers=auth_headers(org["hr"]))
    assert response.json()["expenses"] == []

    response = client.get("/api/v1/approvals/authority", headers=auth_headers(org["hr"]))
    assert response.json()["can_approve_expense"] is False

    response = client.get(
        "/api/v1/approvals/can-approve",
        params={"subject_id": org["alice"].id, "domain": "expense"},
        headers=auth_headers(org["senior"]),
    )
    assert response.json()["can_approve"] is True


def test_expense_endpoints(client, org):
    response = client.post(
        "/api/v1/expenses",
        json={"expense_date": "2030-01-10", "category": "Meals", "amount": "18.40", "currency": "GBP"},
        headers=auth_headers(org["alice"]),
    )
    assert response.status_code == status.HTTP_201_CREATED
    expense_id = response.json()["id"]

    response = client.post(f"/api/v1/expenses/{expense_id}/approve", headers=auth_headers(org["hr"]))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(f"/api/v1/expenses/{expense_id}/approve", headers=auth_headers(org["manager"]))
    assert response.status_code == status.HTTP_200_OK

    response = client.post(f"/api/v1/expenses/{expense_id}/mark-paid", headers=auth_headers(org["manager"]))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(f"/api/v1/expenses/{expense_id}/mark-paid", headers=auth_headers(org["admin"]))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "PAID"

    response = client.post(f"/api/v1/expenses/{expense_id}/revert", headers=auth_headers(org["admin"]))
    assert response.json()["status"] == "PENDING"


def test_overtime_endpoints(client, org):
    response = client.post(
        "/api/v1/overtime",
        json={"work_date": "2030-01-10", "scheduled_hours": "8", "worked_hours": "9.5"},
        headers=auth_headers(org["alice"]),
    )
    assert response.status_code == status.HTTP_201_CREATED
    overtime_id = response.json()["id"]

    response = client.post(f"/api/v1/overtime/{overtime_id}/reject", json={"reason": "Not pre-agreed"}, headers=auth_headers(org["manager"]))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "REJECTED"


def test_conflicts_endpoint(client, org):
    request_id = _create_leave(client, org["alice"]).json()["id"]
    approved = client.post(f"/api/v1/leave-requests/{request_id}/approve", headers=auth_headers(org["manager"])).json()

    params = {"start_date": approved["start_date"], "end_date": approved["end_date"]}
    response = client.get("/api/v1/leave-records/conflicts", params=params, headers=auth_headers(org["alice"]))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["has_conflicts"] is True

    response = client.get(
        "/api/v1/leave-records/conflicts",
        params={**params, "employee_id": org["alice"].id},
        headers=auth_headers(org["bob"]),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_balance_admin_endpoints(client, org):
    response = client.post(
        "/api/v1/balances",
        json={"employee_id": org["alice"].id, "leave_year_start": "2030-01-01", "entitlement_days": "22"},
        headers=auth_headers(org["alice"]),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(
        "/api/v1/balances",
        json={"employee_id": org["alice"].id, "leave_year_start": "2030-01-01", "entitlement_days": "22"},
        headers=auth_headers(org["hr"]),
    )
    assert response.status_code == status.HTTP_201_CREATED
    balance_id = response.json()["id"]

    response = client.post(
        f"/api/v1/balances/{balance_id}/adjustments",
        json={"days": "-2", "reason": "Bought back two days"},
        headers=auth_headers(org["hr"]),
    )
    assert response.status_code == status.HTTP_200_OK
    assert float(response.json()["remaining_days"]) == 20.0
    assert len(response.json()["adjustments"]) == 1


def test_admin_absence_detection_run(client, db, org):
    day = date(2030, 3, 12)
    db.add(ShiftAssignment(employee_id=org["alice"].id, shift_date=day, start_time="09:00", end_time="17:00"))
    db.commit()

    response = client.post(
        "/api/v1/admin/absence-detection/run",
        json={"target_date": day.isoformat()},
        headers=auth_headers(org["manager"]),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.post(
        "/api/v1/admin/absence-detection/run",
        json={"target_date": day.isoformat()},
        headers=auth_headers(org["admin"]),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["absences"] == 1
    assert db.query(ShiftAssignment).one().status == ShiftStatus.MISSED

    response = client.get("/api/v1/notifications/me", headers=auth_headers(org["admin"]))
    assert [n["notification_type"] for n in response.json()] == ["ABSENCE_DETECTED"]
