"""Contract tests for GET /payment/status/{booking_id}.

Test categories:
- Success response (200) and camelCase schema
- Missing userId (400)
- Not found handling (404)
"""

from starlette.status import HTTP_200_OK, HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND

# === Test Configuration ===

STATUS_URL = "/payment/status/{booking_id}"

EXPECTED_FIELDS = {
    "success",
    "status",
    "paymentStatus",
    "boardingStatus",
    "amount",
    "currency",
    "checkoutSessionId",
    "checkoutUrl",
    "paymentProviderPaymentId",
    "paymentMethod",
    "paymentError",
    "paidAt",
    "paymentInitiatedAt",
    "paymentFailedAt",
    "paymentExpiredAt",
    "createdAt",
    "updatedAt",
}


class TestPaymentStatusSuccess:
    """200 with the booking's payment projection."""

    def test_fresh_booking_defaults(self, client, seed_booking):
        seed_booking()

        response = client.get(STATUS_URL.format(booking_id="b1"), params={"userId": "u1"})

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "pending_payment"
        assert data["paymentStatus"] == "pending"
        assert data["boardingStatus"] == "pending"
        assert data["amount"] == 150000

    def test_response_schema(self, client, seed_booking):
        seed_booking()

        response = client.get(STATUS_URL.format(booking_id="b1"), params={"userId": "u1"})

        assert set(response.json()) == EXPECTED_FIELDS

    def test_paid_booking_reports_timestamp(self, client, seed_booking):
        seed_booking(
            status="paid",
            payment_status="paid",
            boarding_status="pending",
            paid_at="2026-03-01T09:15:00+00:00",
            payment_method="gcash",
        )

        response = client.get(STATUS_URL.format(booking_id="b1"), params={"userId": "u1"})

        data = response.json()
        assert data["status"] == "paid"
        assert data["paidAt"] == "2026-03-01T09:15:00Z"
        assert data["paymentMethod"] == "gcash"

    def test_unreadable_dashboard_fields_are_tolerated(self, client, seed_booking):
        seed_booking(booking_id="b9", quantity="2 seats", paid_at="yesterday")

        response = client.get(STATUS_URL.format(booking_id="b9"), params={"userId": "u1"})

        assert response.status_code == HTTP_200_OK
        assert response.json()["paidAt"] is None
        assert response.json()["amount"] == 150000

    def test_read_does_not_modify_booking(self, client, seed_booking, read_booking_item):
        seeded = seed_booking(status="payment_initiated", payment_status="pending")

        client.get(STATUS_URL.format(booking_id="b1"), params={"userId": "u1"})

        assert read_booking_item() == seeded


class TestPaymentStatusErrors:
    """Missing owner and unknown bookings."""

    def test_missing_user_id(self, client, seed_booking):
        seed_booking()

        response = client.get(STATUS_URL.format(booking_id="b1"))

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_VALIDATION"

    def test_empty_user_id(self, client):
        response = client.get(STATUS_URL.format(booking_id="b1"), params={"userId": ""})

        assert response.status_code == HTTP_400_BAD_REQUEST

    def test_not_found(self, client, dynamodb_tables):
        response = client.get(STATUS_URL.format(booking_id="missing"), params={"userId": "u1"})

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "ERR_BOOKING_NOT_FOUND"

    def test_booking_of_another_owner_is_not_found(self, client, seed_booking):
        seed_booking(owner_id="u2")

        response = client.get(STATUS_URL.format(booking_id="b1"), params={"userId": "u1"})

        assert response.status_code == HTTP_404_NOT_FOUND
