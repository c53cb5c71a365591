from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator, List, Optional
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from tourbook.config import Settings, get_settings
from tourbook.deps import get_agency_client, get_agency_zone, get_flow_store
from tourbook.domain.errors import ExternalServiceError, NetworkError
from tourbook.infrastructure.flow_store import InMemoryFlowStore
from tourbook.main import app
from tourbook.models import (
    Activity,
    AvailabilityDay,
    AvailabilitySlot,
    PaymentInitRequest,
    PaymentSession,
    PaymentType,
    ReservationResult,
    ReservationSubmission,
)


class FakeAgency:
    def __init__(self) -> None:
        self.activity = Activity(
            id=5,
            name="Rafting",
            base_price=Decimal("500"),
            max_participants=4,
            default_times=["10:00", "15:00"],
            extras=[{"name": "Lunch", "priceAmount": 150}],
            requires_deposit=True,
            deposit_type="fixed",
            deposit_amount=Decimal("200"),
            has_free_hotel_transfer=True,
            transfer_zones=[{"zoneName": "Old Town", "minutesBefore": 45}],
        )
        self.reservation_error: Optional[Exception] = None
        self.submissions: List[ReservationSubmission] = []
        self.payments: List[PaymentInitRequest] = []

    async def get_activity(self, activity_id: int) -> Activity:
        if activity_id != self.activity.id:
            raise ExternalServiceError("Activity not found", status_code=404)
        return self.activity

    async def get_availability(self, activity_id: int, on: date) -> Optional[AvailabilityDay]:
        return AvailabilityDay(
            date=on,
            time_slots=[
                AvailabilitySlot(time="10:00", total_slots=8, booked_slots=8),
                AvailabilitySlot(time="15:00", total_slots=8, booked_slots=2),
            ],
        )

    async def create_reservation(self, submission: ReservationSubmission) -> ReservationResult:
        self.submissions.append(submission)
        if self.reservation_error is not None:
            raise self.reservation_error
        return ReservationResult(
            id=60,
            tracking_token="tok-60",
            total_price=Decimal("1300"),
            deposit_required=Decimal("200"),
            payment_type=PaymentType.PARTIAL,
            remaining_payment=Decimal("1100"),
        )

    async def initialize_payment(self, request: PaymentInitRequest) -> PaymentSession:
        self.payments.append(request)
        return PaymentSession(payment_page_url="https://pay.example/p/60")


@pytest.fixture
def agency() -> Iterator[FakeAgency]:
    fake = FakeAgency()
    store = InMemoryFlowStore(ttl=timedelta(minutes=30))
    app.dependency_overrides[get_agency_client] = lambda: fake
    app.dependency_overrides[get_flow_store] = lambda: store
    app.dependency_overrides[get_agency_zone] = lambda: ZoneInfo("Europe/Istanbul")
    app.dependency_overrides[get_settings] = lambda: Settings(payment_callback_url="https://agency.example/cb")
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client(agency: FakeAgency) -> TestClient:
    return TestClient(app)


def _start(client: TestClient) -> str:
    resp = client.post("/flows", json={"activityId": 5})
    assert resp.status_code == 201
    body = resp.json()
    assert body["step"] == "selection"
    return body["flowId"]


def _to_contact(client: TestClient, flow_id: str) -> None:
    resp = client.put(
        f"/flows/{flow_id}/selection",
        json={"date": "2025-07-01", "time": "15:00", "participantCount": 2},
    )
    assert resp.status_code == 200
    assert client.post(f"/flows/{flow_id}/next").json()["step"] == "participants"
    resp = client.put(
        f"/flows/{flow_id}/participants",
        json={
            "participants": [
                {"firstName": "Ada", "lastName": "Guest", "birthDate": "1990-01-01"},
                {"firstName": "Bo", "lastName": "Guest", "birthDate": "1991-01-01"},
            ]
        },
    )
    assert resp.status_code == 200
    assert client.post(f"/flows/{flow_id}/next").json()["step"] == "contact"


def test_full_flow_ends_in_payment_redirect(client: TestClient, agency: FakeAgency) -> None:
    flow_id = _start(client)
    _to_contact(client, flow_id)

    resp = client.put(f"/flows/{flow_id}/extras", json={"name": "Lunch", "quantity": 3})
    assert resp.status_code == 200
    price = resp.json()["price"]
    assert resp.json()["draft"]["selectedExtras"][0]["quantity"] == 2
    assert price["grandTotal"] == 1300
    assert price["depositRequired"] == 200
    assert price["remainingPayment"] == 1100
    assert price["paymentType"] == "partial"

    resp = client.put(
        f"/flows/{flow_id}/contact",
        json={
            "customerName": "Ada Guest",
            "customerPhone": "+90 555 000 00 00",
            "hasTransfer": True,
            "transferZone": "Old Town",
            "hotelName": "Sea View",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["pickupAt"] == "2025-07-01T14:15:00+03:00"

    resp = client.post(f"/flows/{flow_id}/submit")
    assert resp.status_code == 200
    body = resp.json()
    assert body["step"] == "payment_redirect"
    assert body["paymentPageUrl"] == "https://pay.example/p/60"
    assert body["result"]["trackingToken"] == "tok-60"
    assert agency.submissions[0].hotel_name == "Sea View"
    assert agency.payments[0].callback_url == "https://agency.example/cb"


def test_request_id_header_is_returned(client: TestClient) -> None:
    resp = client.post("/flows", json={"activityId": 5}, headers={"X-Request-ID": "req-flow-1"})
    assert resp.headers["X-Request-ID"] == "req-flow-1"


def test_unknown_activity_is_404(client: TestClient) -> None:
    resp = client.post("/flows", json={"activityId": 99})
    assert resp.status_code == 404


def test_unknown_flow_is_404(client: TestClient) -> None:
    assert client.get("/flows/does-not-exist").status_code == 404


def test_full_time_slot_is_422(client: TestClient) -> None:
    flow_id = _start(client)
    resp = client.put(f"/flows/{flow_id}/selection", json={"date": "2025-07-01", "time": "10:00"})
    assert resp.status_code == 422
    assert "not available" in resp.json()["detail"]


def test_next_without_time_is_422_and_stays_in_selection(client: TestClient) -> None:
    flow_id = _start(client)
    client.put(f"/flows/{flow_id}/selection", json={"date": "2025-07-01"})
    assert client.post(f"/flows/{flow_id}/next").status_code == 422
    assert client.get(f"/flows/{flow_id}").json()["step"] == "selection"


def test_back_keeps_contact_fields(client: TestClient) -> None:
    flow_id = _start(client)
    _to_contact(client, flow_id)
    client.put(f"/flows/{flow_id}/contact", json={"customerName": "Ada Guest", "notes": "vegan"})
    assert client.post(f"/flows/{flow_id}/back").json()["step"] == "participants"
    body = client.post(f"/flows/{flow_id}/next").json()
    assert body["draft"]["customerName"] == "Ada Guest"
    assert body["draft"]["notes"] == "vegan"


def test_network_failure_on_submit_is_503_and_flow_returns_to_contact(
    client: TestClient, agency: FakeAgency
) -> None:
    agency.reservation_error = NetworkError("agency API unreachable")
    flow_id = _start(client)
    _to_contact(client, flow_id)
    client.put(f"/flows/{flow_id}/contact", json={"customerName": "Ada Guest", "customerPhone": "+90"})

    assert client.post(f"/flows/{flow_id}/submit").status_code == 503
    body = client.get(f"/flows/{flow_id}").json()
    assert body["step"] == "contact"
    assert body["lastError"] == "agency API unreachable"
    assert body["draft"]["customerPhone"] == "+90"


def test_capacity_conflict_on_submit_is_422(client: TestClient, agency: FakeAgency) -> None:
    agency.reservation_error = ExternalServiceError(
        "Not enough places left", status_code=400, code="INSUFFICIENT_CAPACITY"
    )
    flow_id = _start(client)
    _to_contact(client, flow_id)
    client.put(f"/flows/{flow_id}/contact", json={"customerName": "Ada Guest", "customerPhone": "+90"})
    resp = client.post(f"/flows/{flow_id}/submit")
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Not enough places left"


def test_reset_and_discard(client: TestClient) -> None:
    flow_id = _start(client)
    client.put(f"/flows/{flow_id}/selection", json={"date": "2025-07-01", "participantCount": 3})
    body = client.post(f"/flows/{flow_id}/reset").json()
    assert body["draft"]["participantCount"] == 1
    assert body["draft"]["date"] is None

    assert client.delete(f"/flows/{flow_id}").status_code == 204
    assert client.get(f"/flows/{flow_id}").status_code == 404
