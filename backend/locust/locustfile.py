"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Many riders, one trip, 18 seats
  locust -f locustfile.py --tags throughput   # Trip search cache
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests

Trips come from the startup seed (SEED_TRIPS=true), so no setup endpoint is
needed; the first user to search picks the contested trip.
"""

import random
import string
from datetime import date, timedelta

from locust import HttpUser, task, between, tag

LOCATIONS = ["Malete Campus", "Lagos", "Abuja", "Ibadan"]
CAPACITY = 18

# Shared state
TRIP_IDS = []
CONTESTED_TRIP_ID = None


def random_matric_number():
    return "LT/" + "".join(random.choices(string.digits, k=4)) + "/" + "".join(
        random.choices(string.digits, k=5)
    )


def random_route():
    origin, destination = random.sample(LOCATIONS, 2)
    travel_date = date.today() + timedelta(days=random.randint(0, 19))
    return {"origin": origin, "destination": destination, "date": travel_date.isoformat()}


class RiderMixin:
    """Registers and signs in a fresh rider on start."""

    def sign_in(self):
        matric_number = random_matric_number()
        self.client.post("/api/v1/auth/register", json={
            "full_name": "Load Test Rider",
            "matric_number": matric_number,
            "password": "test1234",
        })
        resp = self.client.post("/api/v1/auth/login", json={
            "matric_number": matric_number,
            "password": "test1234",
        })
        if resp.status_code == 200:
            self.headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}
        else:
            self.headers = {}


class ConcurrencyUser(RiderMixin, HttpUser):
    """
    TEST 1: Concurrency - 100 riders -> 18 seats on one trip

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT seat_number, COUNT(*) FROM reservations
      WHERE trip_id = X AND status = 'confirmed'
      GROUP BY seat_number HAVING COUNT(*) > 1;
    Should return no rows.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONTESTED_TRIP_ID
        self.sign_in()
        if CONTESTED_TRIP_ID is None:
            resp = self.client.get("/api/v1/trips/", params={
                "origin": "Malete Campus",
                "destination": "Lagos",
                "date": date.today().isoformat(),
            })
            if resp.status_code == 200 and resp.json():
                CONTESTED_TRIP_ID = resp.json()[0]["id"]
                print(f"\n✓ Contesting trip {CONTESTED_TRIP_ID}\n")

    @tag("concurrency")
    @task
    def reserve_contested_seats(self):
        """All riders fight for the same 18 seats, one or two at a time."""
        if not CONTESTED_TRIP_ID or not self.headers:
            return

        seats = random.sample(range(1, CAPACITY + 1), random.choice([1, 2]))
        with self.client.post("/api/v1/reservations/",
            json={"trip_id": CONTESTED_TRIP_ID, "seats": seats},
            headers=self.headers,
            name="/api/v1/reservations/ [contested]",
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409 and resp.json().get("seat") in seats:
                resp.success()  # Expected: seat taken, and the response says which
            else:
                resp.failure(f"Unexpected: {resp.status_code} {resp.text[:120]}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - trip search cache

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def search_trips(self):
        resp = self.client.get("/api/v1/trips/", params=random_route(), name="/api/v1/trips/ [search]")
        if resp.status_code == 200:
            for trip in resp.json():
                if trip["id"] not in TRIP_IDS:
                    TRIP_IDS.append(trip["id"])

    @tag("throughput", "read")
    @task(3)
    def seat_map(self):
        """Never cached: always hits the ledger."""
        if TRIP_IDS:
            self.client.get(f"/api/v1/trips/{random.choice(TRIP_IDS)}/seats",
                name="/api/v1/trips/{id}/seats")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(RiderMixin, HttpUser):
    """
    TEST 3: Edge cases - every rejection has its own reason code

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.sign_in()

    def expect(self, payload, status_code, code, headers=None):
        with self.client.post("/api/v1/reservations/",
            json=payload,
            headers=self.headers if headers is None else headers,
            name=f"/api/v1/reservations/ [{code}]",
            catch_response=True
        ) as resp:
            if resp.status_code == status_code and resp.json().get("error") == code:
                resp.success()
            else:
                resp.failure(f"Expected {status_code} {code}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_trip(self):
        self.expect({"trip_id": 999999, "seats": [1]}, 404, "TRIP_NOT_FOUND")

    @tag("edge")
    @task
    def no_seats(self):
        self.expect({"trip_id": 1, "seats": []}, 400, "NO_SEATS_SELECTED")

    @tag("edge")
    @task
    def three_seats(self):
        self.expect({"trip_id": 1, "seats": [1, 2, 3]}, 400, "TOO_MANY_SEATS")

    @tag("edge")
    @task
    def seat_out_of_range(self):
        self.expect({"trip_id": 1, "seats": [CAPACITY + 1]}, 400, "INVALID_SEAT")

    @tag("edge")
    @task
    def duplicate_seat(self):
        self.expect({"trip_id": 1, "seats": [4, 4]}, 400, "INVALID_SEAT")

    @tag("edge")
    @task
    def missing_auth(self):
        self.expect({"trip_id": 1, "seats": [1]}, 401, "UNAUTHENTICATED", headers={})

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/reservations/",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")


class RealisticUser(RiderMixin, HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.sign_in()

    @task(50)
    def search(self):
        resp = self.client.get("/api/v1/trips/", params=random_route(), name="/api/v1/trips/ [search]")
        if resp.status_code == 200:
            for trip in resp.json():
                if trip["id"] not in TRIP_IDS:
                    TRIP_IDS.append(trip["id"])

    @task(20)
    def view_seats(self):
        if TRIP_IDS:
            self.client.get(f"/api/v1/trips/{random.choice(TRIP_IDS)}/seats",
                name="/api/v1/trips/{id}/seats")

    @task(10)
    def reserve(self):
        if not TRIP_IDS or not self.headers:
            return
        trip_id = random.choice(TRIP_IDS)
        resp = self.client.get(f"/api/v1/trips/{trip_id}/seats", name="/api/v1/trips/{id}/seats")
        if resp.status_code != 200:
            return
        free = sorted(set(range(1, CAPACITY + 1)) - set(resp.json()["occupied"]))
        if free:
            self.client.post("/api/v1/reservations/",
                json={"trip_id": trip_id, "seats": random.sample(free, min(len(free), random.choice([1, 2])))},
                headers=self.headers,
                name="/api/v1/reservations/")

    @task(3)
    def history(self):
        if self.headers:
            self.client.get("/api/v1/reservations/mine", headers=self.headers)
