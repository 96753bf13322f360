from decimal import Decimal

from packledger.crud import check_in as check_in_crud
from packledger.models import PackStatus


def check_in_headers(auth_headers, key):
    return {**auth_headers, "Idempotency-Key": key}


class TestPackAssignmentEndpoints:
    """Интеграционные тесты эндпоинтов пакетов участников"""

    def test_create_pack_assignment(self, client, auth_headers, test_member, test_pack_template):
        payload = {
            "member_id": test_member.id,
            "pack_template_id": test_pack_template.id,
            "payment_status": "paid",
            "payment_method": "cash",
        }

        response = client.post("/pack-assignments/", json=payload, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["member_id"] == test_member.id
        assert data["total_sessions"] == 12
        assert data["remaining_sessions"] == 12
        assert data["status"] == "active"
        assert data["payment_status"] == "paid"
        assert data["payment_method"] == "cash"
        assert Decimal(data["amount_paid"]) == Decimal("1200")
        assert data["created_by"] == 1
        assert data["member"]["member_code"] == "GYM-001"

    def test_create_for_unknown_member(self, client, auth_headers, test_pack_template):
        response = client.post(
            "/pack-assignments/",
            json={"member_id": 404, "pack_template_id": test_pack_template.id},
            headers=auth_headers,
        )
        assert response.status_code == 404

    def test_create_with_invalid_payment_status(self, client, auth_headers, test_member, test_pack_template):
        response = client.post(
            "/pack-assignments/",
            json={"member_id": test_member.id, "pack_template_id": test_pack_template.id, "payment_status": "refunded"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_staff_is_recorded_as_seller(self, client, staff_headers, test_member, test_pack_template):
        response = client.post(
            "/pack-assignments/",
            json={"member_id": test_member.id, "pack_template_id": test_pack_template.id},
            headers=staff_headers,
        )
        assert response.status_code == 201
        assert response.json()["created_by"] == 7

    def test_get_pack_assignment(self, client, auth_headers, test_expired_assignment):
        response = client.get(f"/pack-assignments/{test_expired_assignment.id}", headers=auth_headers)

        assert response.status_code == 200
        # Статус пересчитывается при чтении
        assert response.json()["status"] == "expired"

    def test_get_unknown_pack_assignment(self, client, auth_headers):
        response = client.get("/pack-assignments/404", headers=auth_headers)
        assert response.status_code == 404

    def test_list_with_filters(
        self,
        client,
        auth_headers,
        test_pack_assignment,
        test_paused_assignment,
        test_expired_assignment,
    ):
        response = client.get("/pack-assignments/", params={"status": "all"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 3

        response = client.get("/pack-assignments/", params={"status": "expired"}, headers=auth_headers)
        assert [item["id"] for item in response.json()["items"]] == [test_expired_assignment.id]

        response = client.get("/pack-assignments/", params={"status": "paused", "q": "hass"}, headers=auth_headers)
        assert [item["id"] for item in response.json()["items"]] == [test_paused_assignment.id]

        response = client.get("/pack-assignments/", params={"q": "nobody"}, headers=auth_headers)
        assert response.json() == {"items": [], "total": 0}

    def test_list_with_unknown_status(self, client, auth_headers):
        response = client.get("/pack-assignments/", params={"status": "frozen"}, headers=auth_headers)
        assert response.status_code == 400

    def test_pause_and_resume(self, client, auth_headers, test_pack_assignment):
        url = f"/pack-assignments/{test_pack_assignment.id}/status"

        response = client.patch(url, json={"status": "paused"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "paused"

        response = client.patch(url, json={"status": "paused"}, headers=auth_headers)
        assert response.status_code == 409

        response = client.patch(url, json={"status": "active"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "active"

    def test_manual_exhaust_is_rejected(self, client, auth_headers, test_pack_assignment):
        response = client.patch(
            f"/pack-assignments/{test_pack_assignment.id}/status",
            json={"status": "exhausted"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_resume_exhausted_pack(self, client, auth_headers, test_exhausted_assignment):
        response = client.patch(
            f"/pack-assignments/{test_exhausted_assignment.id}/status",
            json={"status": "active"},
            headers=auth_headers,
        )
        assert response.status_code == 409


class TestCheckInEndpoints:
    """Интеграционные тесты списаний"""

    def test_check_in_and_replay(self, client, auth_headers, db_session, test_three_session_assignment):
        url = f"/pack-assignments/{test_three_session_assignment.id}/checkins"
        headers = check_in_headers(auth_headers, "desk-1:visit-1")

        first = client.post(url, headers=headers)
        assert first.status_code == 200
        first_data = first.json()
        assert first_data["idempotent_replay"] is False
        assert first_data["assignment"]["remaining_sessions"] == 2
        assert first_data["assignment"]["used_sessions"] == 1
        assert first_data["check_in"]["idempotency_key"] == "desk-1:visit-1"
        assert first_data["check_in"]["performed_by"] == 1

        second = client.post(url, headers=headers)
        assert second.status_code == 200
        second_data = second.json()
        assert second_data["idempotent_replay"] is True
        assert second_data["check_in"]["id"] == first_data["check_in"]["id"]
        assert second_data["assignment"]["remaining_sessions"] == 2

        assert check_in_crud.count_check_ins(db_session, test_three_session_assignment.id) == 1

    def test_check_in_with_session_override(self, client, auth_headers, test_pack_assignment):
        response = client.post(
            f"/pack-assignments/{test_pack_assignment.id}/checkins",
            json={"session_name": "Boxing", "session_price": "80.00"},
            headers=check_in_headers(auth_headers, "visit-1"),
        )

        assert response.status_code == 200
        check_in = response.json()["check_in"]
        assert check_in["session_name"] == "Boxing"
        assert Decimal(check_in["session_price"]) == Decimal("80")

    def test_check_in_without_idempotency_key(self, client, auth_headers, test_pack_assignment):
        response = client.post(f"/pack-assignments/{test_pack_assignment.id}/checkins", headers=auth_headers)
        assert response.status_code == 400

    def test_last_session_exhausts_pack(self, client, auth_headers, test_three_session_assignment):
        url = f"/pack-assignments/{test_three_session_assignment.id}/checkins"
        for visit in range(3):
            response = client.post(url, headers=check_in_headers(auth_headers, f"visit-{visit}"))
            assert response.status_code == 200

        assert response.json()["assignment"]["status"] == PackStatus.EXHAUSTED.value

        response = client.post(url, headers=check_in_headers(auth_headers, "visit-extra"))
        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "exhausted"

    def test_check_in_on_paused_pack(self, client, auth_headers, test_paused_assignment):
        response = client.post(
            f"/pack-assignments/{test_paused_assignment.id}/checkins",
            headers=check_in_headers(auth_headers, "visit-1"),
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["reason"] == "paused"
        assert detail["message"]

    def test_check_in_on_expired_pack(self, client, auth_headers, test_expired_assignment):
        response = client.post(
            f"/pack-assignments/{test_expired_assignment.id}/checkins",
            headers=check_in_headers(auth_headers, "visit-1"),
        )

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "expired"

    def test_check_in_on_unknown_pack(self, client, auth_headers):
        response = client.post("/pack-assignments/404/checkins", headers=check_in_headers(auth_headers, "visit-1"))
        assert response.status_code == 404

    def test_check_in_history(self, client, auth_headers, test_pack_assignment):
        url = f"/pack-assignments/{test_pack_assignment.id}/checkins"
        for visit in range(3):
            client.post(url, headers=check_in_headers(auth_headers, f"visit-{visit}"))

        response = client.get(url, params={"page": 1, "page_size": 2}, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 3
        assert data["total_pages"] == 2
        assert data["page"] == 1
        assert [item["idempotency_key"] for item in data["data"]] == ["visit-0", "visit-1"]

        response = client.get(url, params={"page": 2, "page_size": 2}, headers=auth_headers)
        assert [item["idempotency_key"] for item in response.json()["data"]] == ["visit-2"]

    def test_history_of_unknown_pack(self, client, auth_headers):
        response = client.get("/pack-assignments/404/checkins", headers=auth_headers)
        assert response.status_code == 404


class TestPackAssignmentAccess:

    def test_requires_authentication(self, client, test_pack_assignment):
        response = client.get(f"/pack-assignments/{test_pack_assignment.id}")
        assert response.status_code == 401

    def test_client_role_is_forbidden(self, client, client_role_headers, test_pack_assignment):
        response = client.post(
            f"/pack-assignments/{test_pack_assignment.id}/checkins",
            headers={**client_role_headers, "Idempotency-Key": "visit-1"},
        )
        assert response.status_code == 403

    def test_invalid_token(self, client):
        response = client.get("/pack-assignments/", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
