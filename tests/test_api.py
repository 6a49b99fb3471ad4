from conftest import as_user, ride_payload


async def create_ride(client, driver_id, **overrides):
    response = await client.post("/api/v1/rides/", json=ride_payload(**overrides), headers=as_user(driver_id))
    assert response.status_code == 201, response.text
    return response.json()


async def book(client, passenger_id, ride_id, seats, price):
    response = await client.post(
        "/api/v1/bookings/",
        json={
            "ride_id": ride_id,
            "seats": seats,
            "pickup_location": "MG Road metro",
            "dropoff_location": "Mysore Palace",
            "price": price,
        },
        headers=as_user(passenger_id),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def decide(client, driver_id, booking_id, status):
    return await client.put(
        f"/api/v1/bookings/{booking_id}/status", json={"status": status}, headers=as_user(driver_id)
    )


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_create_and_get_user(client):
    response = await client.post(
        "/api/v1/users/", json={"name": "Ravi", "email": "ravi@example.com", "role": "driver"}
    )
    assert response.status_code == 201
    user = response.json()
    assert user["total_earnings"] == 0.0

    duplicate = await client.post(
        "/api/v1/users/", json={"name": "Ravi", "email": "ravi@example.com", "role": "passenger"}
    )
    assert duplicate.status_code == 409

    fetched = await client.get(f"/api/v1/users/{user['id']}")
    assert fetched.json()["role"] == "driver"


async def test_protected_routes_need_a_known_caller(client):
    response = await client.post("/api/v1/rides/", json=ride_payload())
    assert response.status_code == 401

    response = await client.post("/api/v1/rides/", json=ride_payload(), headers=as_user(999))
    assert response.status_code == 401
    assert response.json()["error"] == "not_authenticated"


async def test_create_ride_validates_route(client, driver):
    payload = ride_payload(origin={"city": "Bangalore"})
    response = await client.post("/api/v1/rides/", json=payload, headers=as_user(driver.id))

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


async def test_create_ride_flattens_snapshot(client, driver):
    ride = await create_ride(client, driver.id)

    assert ride["status"] == "scheduled"
    assert ride["vehicle_license_plate"] == "KA-01-1234"
    assert ride["from_city"] == "Bangalore"
    assert ride["to_city"] == "Mysore"
    assert ride["passengers"] == []
    assert ride["rules"] == ["No smoking"]


async def test_list_rides_filters_and_orders(client, driver):
    late = await create_ride(client, driver.id, departure_time="2030-05-17T18:00:00")
    early = await create_ride(client, driver.id, departure_time="2030-05-17T06:00:00")
    await create_ride(client, driver.id, departure_time="2030-05-18T06:00:00")
    await create_ride(client, driver.id, destination={"city": "Chennai", "address": "Marina"})
    await create_ride(client, driver.id, available_seats=1)

    response = await client.get(
        "/api/v1/rides/", params={"from": "Bangalore", "to": "Mysore", "date": "2030-05-17", "seats": 2}
    )

    assert response.status_code == 200
    assert [ride["id"] for ride in response.json()] == [early["id"], late["id"]]


async def test_update_ride_is_driver_only(client, driver, passenger):
    ride = await create_ride(client, driver.id)

    denied = await client.put(f"/api/v1/rides/{ride['id']}", json={"notes": "mine now"}, headers=as_user(passenger.id))
    assert denied.status_code == 403

    updated = await client.put(
        f"/api/v1/rides/{ride['id']}",
        json={"notes": "Meet at gate 2", "price_per_seat": 120},
        headers=as_user(driver.id),
    )
    assert updated.status_code == 200
    assert updated.json()["notes"] == "Meet at gate 2"
    assert updated.json()["price_per_seat"] == 120


async def test_get_missing_ride(client):
    response = await client.get("/api/v1/rides/4040")
    assert response.status_code == 404
    assert response.json()["message"] == "Ride not found"


async def test_booking_lists_are_split_by_role(client, driver, passenger):
    ride = await create_ride(client, driver.id)
    first = await book(client, passenger.id, ride["id"], 1, 100)
    second = await book(client, passenger.id, ride["id"], 2, 200)

    as_passenger = await client.get("/api/v1/bookings/passenger", headers=as_user(passenger.id))
    as_driver = await client.get("/api/v1/bookings/driver", headers=as_user(driver.id))

    assert [b["id"] for b in as_passenger.json()] == [second["id"], first["id"]]
    assert [b["id"] for b in as_driver.json()] == [second["id"], first["id"]]
    empty = await client.get("/api/v1/bookings/driver", headers=as_user(passenger.id))
    assert empty.json() == []


async def test_invalid_booking_status_is_rejected(client, driver, passenger):
    ride = await create_ride(client, driver.id)
    booking = await book(client, passenger.id, ride["id"], 1, 100)

    response = await decide(client, driver.id, booking["id"], "confirmed")

    assert response.status_code == 400


async def test_passenger_cancels_booking(client, driver, passenger):
    ride = await create_ride(client, driver.id)
    booking = await book(client, passenger.id, ride["id"], 1, 100)

    denied = await client.delete(f"/api/v1/bookings/{booking['id']}", headers=as_user(driver.id))
    assert denied.status_code == 403

    response = await client.delete(f"/api/v1/bookings/{booking['id']}", headers=as_user(passenger.id))
    assert response.status_code == 200
    assert response.json() == {"message": "Booking cancelled"}

    remaining = await client.get("/api/v1/bookings/passenger", headers=as_user(passenger.id))
    assert remaining.json() == []


async def test_delete_ride_with_pending_bookings(client, driver, passenger):
    ride = await create_ride(client, driver.id)
    await book(client, passenger.id, ride["id"], 1, 100)

    response = await client.delete(f"/api/v1/rides/{ride['id']}", headers=as_user(driver.id))

    assert response.status_code == 200
    assert (await client.get(f"/api/v1/rides/{ride['id']}")).status_code == 404
    remaining = await client.get("/api/v1/bookings/passenger", headers=as_user(passenger.id))
    assert remaining.json() == []


async def test_passenger_status_sub_resource(client, driver, passenger):
    ride = await create_ride(client, driver.id)
    booking = await book(client, passenger.id, ride["id"], 2, 200)
    await decide(client, driver.id, booking["id"], "accepted")
    entry_id = (await client.get(f"/api/v1/rides/{ride['id']}")).json()["passengers"][0]["id"]

    response = await client.put(
        f"/api/v1/rides/{ride['id']}/passengers/{entry_id}/status",
        json={"status": "cancelled"},
        headers=as_user(passenger.id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["passengers"][0]["status"] == "cancelled"
    assert body["available_seats"] == 3


async def test_my_rides_history_and_stats(client, driver, passenger, second_passenger):
    ride = await create_ride(client, driver.id)
    other = await create_ride(client, driver.id)
    booking = await book(client, passenger.id, ride["id"], 1, 100)
    await decide(client, driver.id, booking["id"], "accepted")
    await client.put(f"/api/v1/rides/{ride['id']}/status", json={"status": "completed"}, headers=as_user(driver.id))
    await client.put(f"/api/v1/rides/{other['id']}/status", json={"status": "cancelled"}, headers=as_user(driver.id))

    mine = await client.get("/api/v1/rides/mine", headers=as_user(passenger.id))
    assert [r["id"] for r in mine.json()] == [ride["id"]]

    history = (await client.get(f"/api/v1/rides/history/{driver.id}", headers=as_user(driver.id))).json()
    assert [r["id"] for r in history["completed"]] == [ride["id"]]
    assert [r["id"] for r in history["canceled"]] == [other["id"]]

    passenger_history = (await client.get(
        f"/api/v1/rides/history/{passenger.id}", headers=as_user(passenger.id)
    )).json()
    assert [r["id"] for r in passenger_history["completed"]] == [ride["id"]]
    assert passenger_history["canceled"] == []

    stats = (await client.get(f"/api/v1/users/{passenger.id}/stats")).json()
    assert stats == {"total_rides": 1, "rating": 0.0, "earnings": 0.0}
    driver_stats = (await client.get(f"/api/v1/users/{driver.id}/stats")).json()
    assert driver_stats["total_rides"] == 1

    outsider = await client.get("/api/v1/rides/mine", headers=as_user(second_passenger.id))
    assert outsider.json() == []


async def test_booking_and_payment_scenario(client, driver, passenger, second_passenger):
    # 1. book two of three seats and get accepted
    ride = await create_ride(client, driver.id, available_seats=3, price_per_seat=100)
    booking = await book(client, passenger.id, ride["id"], 2, 200)
    assert booking["status"] == "pending"
    assert booking["price"] == 200
    assert booking["driver_id"] == driver.id

    accepted = await decide(client, driver.id, booking["id"], "accepted")
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"

    current = (await client.get(f"/api/v1/rides/{ride['id']}")).json()
    assert current["available_seats"] == 1
    assert len(current["passengers"]) == 1
    entry = current["passengers"][0]
    assert (entry["user_id"], entry["status"], entry["seats"]) == (passenger.id, "confirmed", 2)

    # 2. pay and credit the driver
    paid = await client.put(f"/api/v1/rides/{ride['id']}/pay", headers=as_user(passenger.id))
    assert paid.status_code == 200
    assert paid.json()["passenger"]["payment_status"] == "completed"
    driver_after = (await client.get(f"/api/v1/users/{driver.id}")).json()
    assert driver_after["total_earnings"] == 200

    # 3. the ride can no longer be deleted
    blocked = await client.delete(f"/api/v1/rides/{ride['id']}", headers=as_user(driver.id))
    assert blocked.status_code == 409
    assert (await client.get(f"/api/v1/rides/{ride['id']}")).status_code == 200

    # 4. a second passenger overbooks and is still accepted
    overbook = await book(client, second_passenger.id, ride["id"], 2, 200)
    assert (await decide(client, driver.id, overbook["id"], "accepted")).status_code == 200
    current = (await client.get(f"/api/v1/rides/{ride['id']}")).json()
    assert current["available_seats"] == -1
    assert len(current["passengers"]) == 2

    # 5. status moves freely, even back to scheduled
    for status in ("started", "completed", "scheduled"):
        response = await client.put(
            f"/api/v1/rides/{ride['id']}/status", json={"status": status}, headers=as_user(driver.id)
        )
        assert response.status_code == 200
        assert response.json()["status"] == status


async def test_pay_without_confirmation(client, driver, passenger):
    ride = await create_ride(client, driver.id)

    response = await client.put(f"/api/v1/rides/{ride['id']}/pay", headers=as_user(passenger.id))

    assert response.status_code == 404
    assert response.json()["message"] == "Passenger not found or not confirmed for this ride"


async def test_non_driver_cannot_accept(client, driver, passenger, second_passenger):
    ride = await create_ride(client, driver.id)
    booking = await book(client, passenger.id, ride["id"], 1, 100)

    response = await decide(client, second_passenger.id, booking["id"], "accepted")

    assert response.status_code == 403
    current = (await client.get(f"/api/v1/rides/{ride['id']}")).json()
    assert current["passengers"] == []
    assert current["available_seats"] == 3


async def test_passenger_cannot_offer_ride(client, passenger):
    response = await client.post("/api/v1/rides/", json=ride_payload(), headers=as_user(passenger.id))
    assert response.status_code == 403
