"""Ticket booking, payment and lifecycle over HTTP."""

from datetime import datetime, timedelta

from tests.conftest import tomorrow


def book(client, headers, **overrides):
    payload = {"ticketTypeId": 1, "quantity": 2, "visitDate": tomorrow()}
    payload.update(overrides)
    return client.post("/api/tickets", headers=headers, json=payload)


def pay(client, headers, ticket_id):
    return client.post("/api/payments/process", headers=headers, json={"ticketId": ticket_id})


class TestBooking:
    def test_total_price_computed(self, client, alice_headers):
        """Two General Admission tickets cost 36.0 and start unpaid."""
        response = book(client, alice_headers)
        assert response.status_code == 201
        ticket = response.json()
        assert ticket["totalPrice"] == 36.0
        assert ticket["isPaid"] is False
        assert ticket["qrCodeData"] is None
        assert ticket["exhibitionTitle"] == "General Admission"
        assert ticket["ticketType"]["name"] == "General Admission"

    def test_owner_is_the_caller(self, client, alice_headers):
        """A userId in the body is ignored."""
        me = client.get("/api/user", headers=alice_headers).json()
        ticket = book(client, alice_headers, userId=1).json()
        assert ticket["userId"] == me["id"]

    def test_total_price_cannot_be_supplied(self, client, alice_headers):
        ticket = book(client, alice_headers, totalPrice=0.01).json()
        assert ticket["totalPrice"] == 36.0

    def test_with_exhibition(self, client, alice_headers):
        ticket = book(client, alice_headers, exhibitionId=2, ticketTypeId=3, quantity=1).json()
        assert ticket["exhibitionId"] == 2
        assert ticket["exhibitionTitle"].startswith("Modern Masters")
        assert ticket["totalPrice"] == 25.0

    def test_unknown_ticket_type(self, client, alice_headers):
        response = book(client, alice_headers, ticketTypeId=99)
        assert response.status_code == 404
        assert response.json()["detail"] == "Ticket type not found"

    def test_unknown_exhibition(self, client, alice_headers):
        response = book(client, alice_headers, exhibitionId=99)
        assert response.status_code == 404
        assert response.json()["detail"] == "Exhibition not found"

    def test_quantity_must_be_positive(self, client, alice_headers):
        response = book(client, alice_headers, quantity=0)
        assert response.status_code == 400
        assert "quantity" in response.json()["detail"]

    def test_requires_login(self, client):
        assert book(client, {}).status_code == 401


class TestVisibility:
    def test_users_see_only_their_tickets(self, client, alice_headers, bob_headers, admin_headers):
        alice_ticket = book(client, alice_headers).json()
        bob_ticket = book(client, bob_headers).json()

        alice_ids = [t["id"] for t in client.get("/api/tickets", headers=alice_headers).json()]
        assert alice_ids == [alice_ticket["id"]]

        admin_ids = {t["id"] for t in client.get("/api/tickets", headers=admin_headers).json()}
        assert {alice_ticket["id"], bob_ticket["id"]} <= admin_ids

    def test_other_users_ticket_forbidden(self, client, alice_headers, bob_headers):
        """Other users cannot read a ticket they do not own."""
        ticket = book(client, alice_headers).json()
        response = client.get(f"/api/tickets/{ticket['id']}", headers=bob_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized"

    def test_owner_and_admin_can_read(self, client, alice_headers, admin_headers):
        ticket = book(client, alice_headers).json()
        assert client.get(f"/api/tickets/{ticket['id']}", headers=alice_headers).status_code == 200
        assert client.get(f"/api/tickets/{ticket['id']}", headers=admin_headers).status_code == 200

    def test_missing_ticket(self, client, alice_headers):
        assert client.get("/api/tickets/999", headers=alice_headers).status_code == 404

    def test_deleted_exhibition_reads_as_general_admission(self, client, alice_headers, admin_headers):
        ticket = book(client, alice_headers, exhibitionId=1).json()
        client.delete("/api/exhibitions/1", headers=admin_headers)

        reloaded = client.get(f"/api/tickets/{ticket['id']}", headers=alice_headers).json()
        assert reloaded["exhibitionId"] == 1
        assert reloaded["exhibition"] is None
        assert reloaded["exhibitionTitle"] == "General Admission"


class TestPayments:
    def test_pay_then_pay_again(self, client, alice_headers):
        """Payment issues a QR code and cannot be repeated."""
        ticket = book(client, alice_headers).json()

        response = pay(client, alice_headers, ticket["id"])
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["ticket"]["isPaid"] is True
        assert body["ticket"]["paymentIntentId"].startswith("pi_")
        assert body["ticket"]["qrCodeData"].startswith("data:image/png;base64,")

        again = pay(client, alice_headers, ticket["id"])
        assert again.status_code == 400
        assert again.json()["detail"] == "Ticket already paid"

    def test_pay_someone_elses_ticket(self, client, alice_headers, bob_headers):
        ticket = book(client, alice_headers).json()
        assert pay(client, bob_headers, ticket["id"]).status_code == 403

    def test_pay_missing_ticket(self, client, alice_headers):
        response = pay(client, alice_headers, 999)
        assert response.status_code == 404
        assert response.json()["detail"] == "Ticket not found"

    def test_ticket_id_required(self, client, alice_headers):
        response = client.post("/api/payments/process", headers=alice_headers, json={})
        assert response.status_code == 400


class TestEntrance:
    def test_admin_marks_paid_ticket_used(self, client, alice_headers, admin_headers):
        ticket = book(client, alice_headers).json()
        pay(client, alice_headers, ticket["id"])

        response = client.post(f"/api/tickets/{ticket['id']}/use", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["isUsed"] is True

        again = client.post(f"/api/tickets/{ticket['id']}/use", headers=admin_headers)
        assert again.status_code == 400
        assert again.json()["detail"] == "Ticket already used"

    def test_unpaid_ticket_cannot_be_used(self, client, alice_headers, admin_headers):
        ticket = book(client, alice_headers).json()
        response = client.post(f"/api/tickets/{ticket['id']}/use", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Ticket not paid"

    def test_only_admin_marks_used(self, client, alice_headers):
        ticket = book(client, alice_headers).json()
        pay(client, alice_headers, ticket["id"])
        assert client.post(f"/api/tickets/{ticket['id']}/use", headers=alice_headers).status_code == 403

    def test_missing_ticket(self, client, admin_headers):
        assert client.post("/api/tickets/999/use", headers=admin_headers).status_code == 404


class TestCancellation:
    def test_cancel_unpaid_future_ticket(self, client, alice_headers):
        ticket = book(client, alice_headers).json()
        assert client.delete(f"/api/tickets/{ticket['id']}", headers=alice_headers).status_code == 204
        assert client.get(f"/api/tickets/{ticket['id']}", headers=alice_headers).status_code == 404

    def test_paid_ticket_cannot_be_cancelled(self, client, alice_headers):
        ticket = book(client, alice_headers).json()
        pay(client, alice_headers, ticket["id"])
        assert client.delete(f"/api/tickets/{ticket['id']}", headers=alice_headers).status_code == 400

    def test_past_visit_cannot_be_cancelled(self, client, alice_headers):
        yesterday = (datetime.utcnow() - timedelta(days=1)).replace(microsecond=0).isoformat()
        ticket = book(client, alice_headers, visitDate=yesterday).json()
        assert client.delete(f"/api/tickets/{ticket['id']}", headers=alice_headers).status_code == 400

    def test_other_user_cannot_cancel(self, client, alice_headers, bob_headers):
        ticket = book(client, alice_headers).json()
        assert client.delete(f"/api/tickets/{ticket['id']}", headers=bob_headers).status_code == 403


class TestQrRegeneration:
    def test_regenerate_for_paid_ticket(self, client, alice_headers):
        ticket = book(client, alice_headers).json()
        pay(client, alice_headers, ticket["id"])
        response = client.post(f"/api/tickets/{ticket['id']}/qr", headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["qrCodeData"].startswith("data:image/png;base64,")

    def test_unpaid_ticket_has_no_qr(self, client, alice_headers):
        ticket = book(client, alice_headers).json()
        assert client.post(f"/api/tickets/{ticket['id']}/qr", headers=alice_headers).status_code == 400

    def test_missing_qr_regenerated_on_read(self, client, memory_storage, alice_headers):
        """A paid ticket that lost its QR payload gets a new one when read."""
        ticket = book(client, alice_headers).json()
        stored = memory_storage.tickets[ticket["id"]]
        memory_storage.tickets[ticket["id"]] = stored.copy(update={
            "is_paid": True,
            "payment_intent_id": "pi_1_1",
            "qr_code_data": None,
        })

        reloaded = client.get(f"/api/tickets/{ticket['id']}", headers=alice_headers).json()
        assert reloaded["qrCodeData"].startswith("data:image/png;base64,")
        assert memory_storage.get_ticket(ticket["id"]).qr_code_data == reloaded["qrCodeData"]

    def test_forbidden_read_leaves_ticket_untouched(self, client, memory_storage, alice_headers, bob_headers):
        """A refused read does not issue a QR payload for someone else's ticket."""
        ticket = book(client, alice_headers).json()
        stored = memory_storage.tickets[ticket["id"]]
        memory_storage.tickets[ticket["id"]] = stored.copy(update={
            "is_paid": True,
            "payment_intent_id": "pi_1_1",
            "qr_code_data": None,
        })

        response = client.get(f"/api/tickets/{ticket['id']}", headers=bob_headers)
        assert response.status_code == 403
        assert memory_storage.get_ticket(ticket["id"]).qr_code_data is None
