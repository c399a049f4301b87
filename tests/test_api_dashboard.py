from datetime import datetime

from conftest import auth_headers, principal_of
from hotel_api.services import booking
from hotel_api.services.booking import GuestInfo


def test_dashboard(client, db, make_room, guest_user, operator_user):
    room = make_room(price="100.00")
    guest = principal_of(guest_user)
    ana = GuestInfo(name="Ana", email="ana@example.com", phone="555")

    paid = booking.create_booking(db, room.id, datetime(2025, 3, 1), datetime(2025, 3, 3), ana, 1, actor=guest, now=datetime(2025, 2, 10))
    booking.mark_paid(db, paid.id, guest)
    canceled = booking.create_booking(db, room.id, datetime(2025, 4, 1), datetime(2025, 4, 2), ana, 1, actor=guest, now=datetime(2025, 3, 10))
    booking.cancel_booking(db, canceled.id, guest)
    booking.create_booking(db, room.id, datetime(2025, 5, 1), datetime(2025, 5, 2), ana, 1, actor=guest, now=datetime(2025, 3, 12))

    headers = auth_headers(operator_user)
    summary = client.get("/dashboard/summary", headers=headers).json()
    assert summary == {
        "users": 2,
        "rooms": 1,
        "reservations_total": 3,
        "reservations_active": 2,
        "reservations_canceled": 1,
        "revenue_total": 200.0,
    }

    occupancy = client.get("/dashboard/occupancy", headers=headers).json()["data"]
    assert occupancy == [{"id": room.id, "name": room.name, "reservations": 3, "capacity": 2, "price_per_night": 100.0}]

    revenue = client.get("/dashboard/monthly-revenue", params={"year": 2025}, headers=headers).json()
    assert revenue == {"year": 2025, "data": [{"month": 2, "revenue": 200.0}]}

    assert client.get("/dashboard/summary", headers=auth_headers(guest_user)).status_code == 403
