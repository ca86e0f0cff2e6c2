# tests/integration/test_booking_flow.py

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from src.main import app


def _event_payload(organizer_id, capacity=10, **overrides):
    payload = {
        "organizer_id": organizer_id,
        "event_name": "Riverside Jazz Night",
        "event_date_time": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
        "address": "1 Harbor Way",
        "city": "Portland",
        "state": "OR",
        "zip_code": "97201",
        "event_capacity": capacity,
        "ticket_price": 25.0,
        "event_instruction": "Doors open at 7pm.",
    }
    payload.update(overrides)
    return payload


def _booking_payload(user_id, event_id, ticket_count=3, payment_status=True):
    return {
        "user_id": user_id,
        "event_id": event_id,
        "ticket_count": ticket_count,
        "ticket_price": 25.0,
        "total_ticket_price": 25.0 * ticket_count,
        "payment_status": payment_status,
    }


def _create_event(client, organizer_id, **overrides):
    response = client.post("/events", json=_event_payload(organizer_id, **overrides))
    assert response.status_code == 201
    return response.json()


def test_booking_flow(client, manager, attendee, email_sender):
    organizer_id, user_id = manager.id, attendee.id

    event = _create_event(client, organizer_id)
    assert event["available_tickets"] == 10
    assert event["event_attendees"] == 0
    assert event["location"]["latitude"] is None

    response = client.post("/bookings", json=_booking_payload(user_id, event["id"]))
    assert response.status_code == 201
    body = response.json()
    booking_id = body["booking"]["id"]
    assert body["booking"]["booking_status"] == "CONFIRMED"
    assert len(body["booking"]["tickets"]) == 3
    assert body["user"]["email"] == "alex@example.com"
    assert body["event"]["available_tickets"] == 7
    assert body["event"]["event_attendees"] == 3
    assert email_sender.sent[0]["to"] == "alex@example.com"

    details = client.get(f"/bookings/{booking_id}", params={"user_id": user_id})
    assert details.status_code == 200
    for ticket in details.json()["booking"]["tickets"]:
        assert ticket["qr_code_image_base64"] == f"qr:{ticket['ticket_id']}"

    my_events = client.get(f"/users/{user_id}/events")
    assert my_events.status_code == 200
    assert [item["event"]["id"] for item in my_events.json()] == [event["id"]]

    cancel = client.post(f"/bookings/{booking_id}/cancel", params={"user_id": user_id})
    assert cancel.status_code == 200
    assert cancel.json()["message"] == "Booking cancelled successfully."

    refreshed = client.get(f"/events/{event['id']}").json()
    assert refreshed["available_tickets"] == 10
    assert refreshed["event_attendees"] == 0

    again = client.post(f"/bookings/{booking_id}/cancel", params={"user_id": user_id})
    assert again.status_code == 409

    assert client.get(f"/users/{user_id}/events").json() == []


def test_booking_errors_map_to_status_codes(client, manager, attendee):
    organizer_id, user_id = manager.id, attendee.id
    event = _create_event(client, organizer_id, capacity=2)

    too_many = client.post("/bookings", json=_booking_payload(user_id, event["id"], ticket_count=3))
    assert too_many.status_code == 409
    assert too_many.json()["detail"] == "Only 2 tickets available, but 3 requested."

    unpaid = client.post(
        "/bookings",
        json=_booking_payload(user_id, event["id"], ticket_count=1, payment_status=False),
    )
    assert unpaid.status_code == 402

    unknown = client.post("/bookings", json=_booking_payload(user_id, "missing", ticket_count=1))
    assert unknown.status_code == 404

    zero = client.post("/bookings", json=_booking_payload(user_id, event["id"], ticket_count=0))
    assert zero.status_code == 422

    assert client.get(f"/events/{event['id']}").json()["available_tickets"] == 2

    booking_id = client.post(
        "/bookings",
        json=_booking_payload(user_id, event["id"], ticket_count=1),
    ).json()["booking"]["id"]

    forbidden = client.post(f"/bookings/{booking_id}/cancel", params={"user_id": organizer_id})
    assert forbidden.status_code == 403
    assert client.get(f"/bookings/{booking_id}", params={"user_id": organizer_id}).status_code == 403
    assert client.get("/bookings/missing", params={"user_id": user_id}).status_code == 404


def test_event_management(client, manager, attendee):
    organizer_id, user_id = manager.id, attendee.id

    assert client.post("/events", json=_event_payload(user_id)).status_code == 403
    assert client.post("/events", json=_event_payload("missing")).status_code == 404
    assert client.post("/events", json=_event_payload(organizer_id, city=None)).status_code == 400

    banner = "A" * (3 * 1024 * 1024)
    too_large = client.post("/events", json=_event_payload(organizer_id, event_image_base64=banner))
    assert too_large.status_code == 413

    event = _create_event(client, organizer_id, capacity=10)
    _create_event(
        client,
        organizer_id,
        event_name="Last Year's Gala",
        event_date_time=(datetime.now(timezone.utc) - timedelta(days=30)).isoformat(),
    )

    upcoming = client.get("/events").json()
    assert [item["id"] for item in upcoming] == [event["id"]]

    organizer_events = client.get("/organizers/events", params={"organizer_id": organizer_id})
    assert len(organizer_events.json()) == 2
    assert client.get("/organizers/events").status_code == 400

    updated = client.put(
        f"/events/{event['id']}",
        params={"user_id": organizer_id},
        json={"event_capacity": 15, "city": "Seattle"},
    )
    assert updated.status_code == 200
    assert updated.json()["event_capacity"] == 15
    assert updated.json()["available_tickets"] == 15
    assert updated.json()["city"] == "Seattle"
    assert updated.json()["event_name"] == "Riverside Jazz Night"

    not_owner = client.put(
        f"/events/{event['id']}",
        params={"user_id": user_id},
        json={"city": "Boise"},
    )
    assert not_owner.status_code == 403

    oversized_banner = client.put(
        f"/events/{event['id']}",
        params={"user_id": organizer_id},
        json={"event_image_base64": banner},
    )
    assert oversized_banner.status_code == 413
    assert client.get(f"/events/{event['id']}").json()["event_image_base64"] is None

    assert client.get("/events/missing").status_code == 404


def test_ticket_pdf_download(client, manager, attendee, pdf_renderer):
    organizer_id, user_id = manager.id, attendee.id
    event = _create_event(client, organizer_id)
    booking_id = client.post(
        "/bookings",
        json=_booking_payload(user_id, event["id"], ticket_count=2),
    ).json()["booking"]["id"]

    response = client.get(f"/bookings/{booking_id}/pdf", params={"user_id": user_id})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f"tickets-{booking_id}.pdf" in response.headers["content-disposition"]
    assert response.content == b"%PDF-fake"
    assert pdf_renderer.calls == [(booking_id, event["id"], user_id)]

    assert client.get(f"/bookings/{booking_id}/pdf", params={"user_id": organizer_id}).status_code == 403


def test_outbox_records_email_outcomes(client, manager, attendee, email_sender):
    organizer_id, user_id = manager.id, attendee.id
    event = _create_event(client, organizer_id)

    client.post("/bookings", json=_booking_payload(user_id, event["id"], ticket_count=1))
    email_sender.fail = True
    failed_booking = client.post(
        "/bookings",
        json=_booking_payload(user_id, event["id"], ticket_count=1),
    )
    assert failed_booking.status_code == 201

    sent = client.get("/outbox/events", params={"status_filter": "SENT"}).json()
    failed = client.get("/outbox/events", params={"status_filter": "FAILED"}).json()

    assert [item["event_type"] for item in sent] == ["BOOKING_CONFIRMED"]
    assert len(failed) == 1
    assert failed[0]["aggregate_id"] == failed_booking.json()["booking"]["id"]
    assert failed[0]["attempts"] == 1
    assert "smtp unavailable" in failed[0]["last_error"]


def test_app_starts_up_and_reports_health():
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"message": "Eventure booking engine is running"}
