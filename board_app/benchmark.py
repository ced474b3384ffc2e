"""
In-process comparison of the sequential and concurrent post detail strategies.

Runs both strategies against the same post, outside HTTP, so the numbers
only contain the database round trips and the orchestration overhead:

    python -m board_app.benchmark [post_id] [iterations]
"""
import asyncio
import statistics
import sys
import time
from dataclasses import dataclass
from typing import List

from board_app.database import AsyncSessionLocal, engine
from board_app.services import PostService


@dataclass
class StrategyTimings:
    name: str
    samples_ms: List[float]

    @property
    def mean(self) -> float:
        return statistics.mean(self.samples_ms)

    @property
    def minimum(self) -> float:
        return min(self.samples_ms)

    @property
    def maximum(self) -> float:
        return max(self.samples_ms)


@dataclass
class ComparisonResult:
    sync: StrategyTimings
    concurrent: StrategyTimings

    @property
    def improvement_pct(self) -> float:
        """Positive when the concurrent strategy is faster on average."""
        if self.sync.mean == 0:
            return 0.0
        return (self.sync.mean - self.concurrent.mean) / self.sync.mean * 100


async def _time_strategy(session_factory, strategy: str, post_id: int, iterations: int) -> List[float]:
    samples = []
    for _ in range(iterations):
        async with session_factory() as session:
            service = PostService(session, session_factory)
            fetch = service.get_post_sync if strategy == "sync" else service.get_post_async
            start = time.perf_counter()
            await fetch(post_id)
            samples.append((time.perf_counter() - start) * 1000)
    return samples


async def compare_strategies(session_factory, post_id: int, iterations: int = 100) -> ComparisonResult:
    if iterations < 1:
        raise ValueError("iterations must be at least 1")

    sync_samples = await _time_strategy(session_factory, "sync", post_id, iterations)
    async_samples = await _time_strategy(session_factory, "async", post_id, iterations)
    return ComparisonResult(
        sync=StrategyTimings("sync", sync_samples),
        concurrent=StrategyTimings("async", async_samples),
    )


def print_report(result: ComparisonResult) -> None:
    print("=" * 60)
    print(f"Strategy comparison ({len(result.sync.samples_ms)} iterations)")
    print("=" * 60)
    for timings in (result.sync, result.concurrent):
        print(
            f"{timings.name:>6}: mean {timings.mean:.2f}ms "
            f"(min {timings.minimum:.2f}ms, max {timings.maximum:.2f}ms)"
        )
    improvement = result.improvement_pct
    if improvement > 0:
        print(f"Concurrent strategy faster by {improvement:.2f}%")
    else:
        print(f"Concurrent strategy slower by {-improvement:.2f}%")
    print("=" * 60)


async def main():
    post_id = int(sys.argv[1]) if len(sys.argv) > 1 else 1
    iterations = int(sys.argv[2]) if len(sys.argv) > 2 else 500

    result = await compare_strategies(AsyncSessionLocal, post_id, iterations)
    await engine.dispose()
    print_report(result)


if __name__ == "__main__":
    asyncio.run(main())
