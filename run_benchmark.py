import asyncio
import os
import subprocess
import sys
import time

import pandas as pd
from sqlalchemy import func, select

from board_app.database import AsyncSessionLocal, engine
from board_app.models import Base, Post


# Configuration
STRATEGIES = ["sync", "async"]
USER_COUNTS = [100, 500]  # Concurrency levels
SPAWN_RATE = 50  # Users per second
RUN_TIME = "60s"  # Test duration per scenario, e.g., "1m" or "60s"
RESULTS_DIR = "results"
APP_PORT = 8000


def run_command(command, cwd=None, env=None):
    """Runs a shell command and raises error if it fails."""
    print(f"Executing: {command}")
    subprocess.check_call(command, shell=True, cwd=cwd, env=env)


def wait_for_service(service_name, port, timeout=10):
    """
    Rudimentary wait for service.
    """
    print(f"Waiting for {service_name} on port {port} to stabilize...")
    time.sleep(timeout)


async def count_posts():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        total = await session.scalar(select(func.count(Post.id)))
    await engine.dispose()
    return total or 0


def ensure_db_ready():
    """Ensure the database is reachable and seeded."""
    if asyncio.run(count_posts()) > 0:
        print("Data exists, skipping seed.")
        return
    print("Seeding database...")
    run_command(f"{sys.executable} database/seed.py")


def start_app():
    print("Starting board API...")
    process = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "board_app.main:app",
            "--port",
            str(APP_PORT),
            "--log-level",
            "warning",
        ]
    )
    wait_for_service("board-app", APP_PORT)
    return process


def run_scenario(strategy, users):
    """Runs a single benchmark scenario."""
    filename = f"{strategy}_{users}u"
    result_file = os.path.join(RESULTS_DIR, f"{filename}_stats.csv")

    if os.path.exists(result_file):
        print(f"Skipping {filename}: Results already exist.")
        return

    print(f"--- Running Scenario: {strategy} | {users} Users ---")

    cmd = [
        sys.executable,
        "-m",
        "locust",
        "-f",
        "locust/locustfile.py",
        "--headless",
        "-u",
        str(users),
        "-r",
        str(SPAWN_RATE),
        "--run-time",
        RUN_TIME,
        "--host",
        f"http://localhost:{APP_PORT}",
        "--csv",
        f"{RESULTS_DIR}/{filename}",
        "--only-summary",
    ]

    env = dict(os.environ, BENCHMARK_STRATEGY=strategy)
    print(f"Starting Locust: {' '.join(cmd)}")
    try:
        subprocess.check_call(cmd, env=env)
    except subprocess.CalledProcessError as e:
        print(f"FAILED Scenario {filename}: {e}")


def generate_summary():
    """Reads all CSV results and creates a summary report."""
    print("Generating Summary Report...")
    summary_data = []

    for filename in os.listdir(RESULTS_DIR):
        if not filename.endswith("_stats.csv"):
            continue

        base_name = filename.replace("_stats.csv", "")
        parts = base_name.split("_")
        if len(parts) != 2 or parts[0] not in STRATEGIES:
            continue

        strategy = parts[0]
        users = parts[1].replace("u", "")

        try:
            df = pd.read_csv(os.path.join(RESULTS_DIR, filename))
            agg = df[df["Name"] == "Aggregated"].iloc[0]
        except (OSError, KeyError, IndexError, pd.errors.ParserError) as e:
            print(f"Failed to process {filename}: {e}")
            continue

        summary_data.append(
            {
                "Strategy": strategy,
                "Users": int(users),
                "RPS": agg["Requests/s"],
                "Median Latency (ms)": agg["50%"],
                "P95 Latency (ms)": agg["95%"],
                "P99 Latency (ms)": agg["99%"],
                "Failures/s": agg["Failures/s"],
            }
        )

    if summary_data:
        summary_df = pd.DataFrame(summary_data)
        summary_df = summary_df.sort_values(by=["Strategy", "Users"])

        # Save to CSV
        summary_df.to_csv("summary_report.csv", index=False)

        print("Summary Report Saved to summary_report.csv")


def main():
    if not os.path.exists(RESULTS_DIR):
        os.makedirs(RESULTS_DIR)

    app_process = None
    try:
        ensure_db_ready()
        app_process = start_app()

        for strategy in STRATEGIES:
            for users in USER_COUNTS:
                run_scenario(strategy, users)
                time.sleep(5)

        generate_summary()

    except KeyboardInterrupt:
        print("Interrupted by user.")
    finally:
        if app_process is not None:
            app_process.terminate()
            app_process.wait()
        print("Benchmark completed.")


if __name__ == "__main__":
    main()
