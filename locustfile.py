"""
Load Test for Hackathon Registration.

Simulates the registration-day traffic pattern: many visitors polling the
public status, a steady stream of team submissions, and a few admins
paging through the team list.

Usage:
    locust -f locustfile.py --host http://localhost:8000
"""

import os
import random
import string

from locust import HttpUser, between, events, task

# ============== Configuration ==============

API_PREFIX = os.getenv("API_PREFIX", "")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin@123")

BRANCHES = [
    "Computer Science",
    "Information Technology",
    "Electronics and Communication",
    "Mechanical Engineering",
]


# ============== Test Data Helpers ==============

def _letters(length: int) -> str:
    return "".join(random.choices(string.ascii_lowercase, k=length))


def generate_member() -> dict:
    """Generate a member whose email and USN are unlikely to collide."""
    tag = _letters(8)
    return {
        "name": f"Load Tester {tag.capitalize()}",
        "email": f"{tag}@loadtest.example.com",
        "phone": "98" + "".join(random.choices(string.digits, k=8)),
        "branch": random.choice(BRANCHES),
        "usn": f"1LT{random.randint(10, 99)}{tag.upper()[:5]}",
        "semester": str(random.randint(1, 8)),
        "college": "Load Test Institute",
    }


def generate_team() -> dict:
    return {
        "teamName": f"Team {_letters(10)}",
        "members": [generate_member() for _ in range(random.randint(1, 4))],
        "projectIdea": "Stress testing the registration service",
    }


def get_public_headers():
    return {"Content-Type": "application/json"}


# ============== Visitor ==============

class StatusVisitor(HttpUser):
    """
    Visitor watching the registration page.

    Behaviors:
    - Poll registration status
    - Occasional health check
    """

    wait_time = between(1, 5)

    @task(10)
    def get_status(self):
        with self.client.get(
            f"{API_PREFIX}/status",
            headers=get_public_headers(),
            name="GET /status",
            catch_response=True,
        ) as response:
            if response.status_code in [200, 429]:
                response.success()
            else:
                response.failure(f"Unexpected status: {response.status_code}")

    @task(1)
    def health_check(self):
        with self.client.get("/health", name="GET /health", catch_response=True) as response:
            if response.status_code == 200:
                response.success()
            else:
                response.failure(f"Health check failed: {response.status_code}")


# ============== Registrant ==============

class TeamRegistrant(HttpUser):
    """Submits anonymous team registrations."""

    wait_time = between(2, 8)

    @task
    def register_team(self):
        with self.client.post(
            f"{API_PREFIX}/teams",
            json=generate_team(),
            headers=get_public_headers(),
            name="POST /teams",
            catch_response=True,
        ) as response:
            # 400 once capacity is reached, 409 on a lost registration-number race
            if response.status_code in [201, 400, 409, 429]:
                response.success()
            else:
                response.failure(f"Unexpected status: {response.status_code}")


# ============== Admin ==============

class AdminBrowser(HttpUser):
    """Admin paging, searching and exporting the team list."""

    wait_time = between(3, 10)
    weight = 1

    def on_start(self):
        self.token = None
        response = self.client.post(
            f"{API_PREFIX}/auth/admin/login",
            json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
            name="POST /auth/admin/login",
        )
        if response.status_code == 200:
            self.token = response.json()["data"]["token"]

    def _headers(self):
        headers = get_public_headers()
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @task(5)
    def list_teams(self):
        page = random.randint(1, 5)
        sort_by = random.choice(["teamName", "submittedAt", "status"])
        with self.client.get(
            f"{API_PREFIX}/teams?page={page}&limit=10&sortBy={sort_by}",
            headers=self._headers(),
            name="GET /teams (paginated)",
            catch_response=True,
        ) as response:
            if response.status_code in [200, 429]:
                response.success()
            else:
                response.failure(f"Unexpected status: {response.status_code}")

    @task(1)
    def export_teams(self):
        with self.client.get(
            f"{API_PREFIX}/teams/export",
            headers=self._headers(),
            name="GET /teams/export",
            catch_response=True,
        ) as response:
            if response.status_code in [200, 429]:
                response.success()
            else:
                response.failure(f"Unexpected status: {response.status_code}")


# ============== Load Test Events ==============

@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Print a summary when the test stops."""
    if environment.stats.total:
        print("\n=== Load Test Summary ===")
        print(f"Total requests: {environment.stats.total.num_requests}")
        print(f"Total failures: {environment.stats.total.num_failures}")
        print(f"Avg response time: {environment.stats.total.avg_response_time:.2f}ms")
        print(f"Requests per second: {environment.stats.total.total_rps:.2f}")


@events.quitting.add_listener
def on_quitting(environment, **kwargs):
    if environment.stats.total.fail_ratio > PERFORMANCE_THRESHOLDS["max_failure_rate"]:
        print(f"WARNING: High failure rate ({environment.stats.total.fail_ratio:.2%})")
    if environment.stats.total.avg_response_time > PERFORMANCE_THRESHOLDS["max_response_time_ms"]:
        print(f"WARNING: High response time ({environment.stats.total.avg_response_time:.2f}ms)")


# ============== Performance Thresholds ==============

PERFORMANCE_THRESHOLDS = {
    "max_response_time_ms": 500,
    "max_failure_rate": 0.05,
}
