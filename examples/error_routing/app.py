"""Error routing -- where failures in embedded code are reported.

Errors name the authored file and line, even inside included files.
``errors_to`` chooses what happens to them: raise (default), call a
function, or write a diagnostic to a stream.

Run:
    python app.py
"""

import io

from kiln import DictLoader, Environment, ExecutionError

env = Environment(
    loader=DictLoader(
        {
            "totals.txt": (
                "Items: {$count}\n"
                "<?py average = total / count ?>"
                "Average: {$average}\n"
            ),
        }
    )
)

page = "Report\n======\n<?include totals.txt?>\nDone.\n"

# Succeeds
report = env.expand(source=page, reported_filename="report.txt", total=10, count=4)

# Raises ExecutionError pointing into totals.txt
try:
    env.expand(source=page, reported_filename="report.txt", total=10, count=0)
except ExecutionError as e:
    raised = e

# Collected by a callback
collected: list[ExecutionError] = []
env.expand(
    source=page, reported_filename="report.txt", errors_to=collected.append, total=1, count=0
)

# Written to a stream
stream = io.StringIO()
env.expand(source=page, reported_filename="report.txt", errors_to=stream, total=1, count=0)
diagnostic = stream.getvalue()


def main() -> None:
    print(report)
    print(raised)
    print()
    print(diagnostic)


if __name__ == "__main__":
    main()
