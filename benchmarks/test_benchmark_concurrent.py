"""Concurrent execution benchmarks: one compiled script, many threads.

Scripts are immutable and every run gets its own namespace and output
buffer, so a single script can be shared across a thread pool.

Run with: pytest benchmarks/test_benchmark_concurrent.py --benchmark-only -v
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor

import pytest
from pytest_benchmark.fixture import BenchmarkFixture

from kiln import Environment, GeneratedScript

TEMPLATE_SOURCE = """\
<?py
rows = [f"<li>{n * n}</li>" for n in range(count)]
?><h1>{$title}</h1>
<?py echo("".join(rows)) ?>
<p>worker {$worker}</p>
"""

WORKERS = min(8, os.cpu_count() or 1)
RUNS = 200


def _run_all(env: Environment, script: GeneratedScript, workers: int) -> list[str | None]:
    def one(i: int) -> str | None:
        return env.run(script, title=f"Page {i}", count=20, worker=i)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(one, range(RUNS)))


@pytest.mark.benchmark(group="concurrent")
def test_single_thread(benchmark: BenchmarkFixture) -> None:
    env = Environment()
    script = env.compile(TEMPLATE_SOURCE)
    results = benchmark(_run_all, env, script, 1)
    assert len(results) == RUNS


@pytest.mark.benchmark(group="concurrent")
def test_thread_pool(benchmark: BenchmarkFixture) -> None:
    env = Environment()
    script = env.compile(TEMPLATE_SOURCE)
    results = benchmark(_run_all, env, script, WORKERS)
    # Runs never see each other's variables
    for i, output in enumerate(results):
        assert f"<h1>Page {i}</h1>" in output
        assert f"<p>worker {i}</p>" in output
