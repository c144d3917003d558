"""
Load testing scenarios menggunakan Locust.

Cara menjalankan:
  python -m quorumlock serve
  locust -f benchmarks/load_test_scenarios.py --host=http://localhost:8080
"""

from locust import HttpUser, task, between, events
import random
import time


class LockUser(HttpUser):
    """
    Simulate user yang acquire, hold, dan release locks lewat gateway.
    """
    wait_time = between(0.5, 2.0)  # Wait 0.5-2 seconds antara tasks

    def on_start(self):
        """Called saat user start"""
        self.resources = [f"resource_{i}" for i in range(10)]

    @task(3)
    def acquire_and_release(self):
        """Acquire lock dengan TTL, hold sebentar, lalu release"""
        key = random.choice(self.resources)

        with self.client.post(
            "/api/lock/acquire",
            json={'key': key, 'ttl': 5000, 'fail_after': 500, 'retry_delay': 50},
            catch_response=True,
            name="/api/lock/acquire"
        ) as response:
            if response.status_code == 200:
                response.success()
                locked = response.json()
                # Hold lock for a bit
                time.sleep(random.uniform(0.1, 0.5))
                self.release_lock(locked)
            elif response.status_code == 409:
                # Contention is expected
                response.success()
            else:
                response.failure(f"HTTP {response.status_code}")

    @task(2)
    def acquire_renew_release(self):
        """Acquire, renew sekali, lalu release"""
        key = random.choice(self.resources)

        response = self.client.post(
            "/api/lock/acquire",
            json={'key': key, 'ttl': 1000, 'fail_after': 200, 'retry_delay': 50}
        )
        if response.status_code != 200:
            return

        locked = response.json()
        time.sleep(random.uniform(0.1, 0.3))

        with self.client.post(
            "/api/lock/renew",
            json={'lock': locked, 'ttl': 1000},
            catch_response=True
        ) as renew_response:
            if renew_response.status_code == 200:
                renew_response.success()
                locked = renew_response.json()
            else:
                renew_response.failure(f"Renew failed: HTTP {renew_response.status_code}")

        self.release_lock(locked)

    def release_lock(self, locked):
        """Release lock"""
        self.client.post("/api/lock/release", json=locked)

    @task(1)
    def check_status(self):
        """Probe status untuk token yang tidak dimiliki"""
        key = random.choice(self.resources)
        self.client.post(
            "/api/lock/status",
            json={'resource': f"lock:{key}", 'token': 'probe'}
        )


# Event handlers untuk custom metrics
@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("Load test starting...")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("Load test complete!")
    print(f"Total requests: {environment.stats.total.num_requests}")
    print(f"Failure rate: {environment.stats.total.fail_ratio:.2%}")
