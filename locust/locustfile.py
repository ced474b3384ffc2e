import os
import random

from locust import HttpUser, task, between

# "sync" or "async": which aggregation strategy endpoint to hit
STRATEGY = os.getenv("BENCHMARK_STRATEGY", "sync")
NUM_POSTS = int(os.getenv("NUM_POSTS", 50_000))


class BoardUser(HttpUser):
    # No wait time between tasks to max out the target system
    wait_time = between(0, 0)

    @task
    def post_detail(self):
        post_id = random.randint(1, NUM_POSTS)
        with self.client.get(
            f"/posts/{post_id}/{STRATEGY}",
            name=f"/posts/[id]/{STRATEGY}",
            catch_response=True,
        ) as response:
            if response.status_code == 200:
                response.success()
            else:
                response.failure(f"Status code: {response.status_code}")
