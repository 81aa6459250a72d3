#
# src/watchrun/runner/parsing.py
#
"""
Parsers for pytest's verbose and collect-only output.
"""

import re

from watchrun.results import SnapshotSummary, TestCaseResult

_RESULT_LINE = re.compile(r"^(?P<node_id>\S+?::\S.*?)\s+(?P<outcome>PASSED|FAILED|ERROR|SKIPPED|XFAIL|XPASS)\b")
_COLLECTED_LINE = re.compile(r"^(?P<node_id>\S+?::\S.*?)\s*$")
_SNAPSHOTS_FAILED = re.compile(r"(\d+) snapshots? failed")
_SNAPSHOTS_UPDATED = re.compile(r"(\d+) snapshots? updated")

OUTCOMES = {
    "PASSED": "passed",
    "FAILED": "failed",
    "ERROR": "error",
    "SKIPPED": "skipped",
    "XFAIL": "skipped",
    "XPASS": "passed",
}


def title_of(node_id: str) -> str:
    """`tests/test_a.py::TestX::test_y` -> `TestX::test_y`."""
    return node_id.split("::", 1)[1]


def parse_verbose_output(output: str) -> list[TestCaseResult]:
    results = []
    seen: set[str] = set()
    for line in output.splitlines():
        match = _RESULT_LINE.match(line)
        if not match:
            continue
        node_id = match["node_id"]
        outcome = OUTCOMES[match["outcome"]]
        if node_id in seen:
            # A teardown ERROR after a PASSED line for the same test.
            if outcome == "error":
                for result in results:
                    if result.node_id == node_id:
                        result.status = outcome
            continue
        seen.add(node_id)
        results.append(TestCaseResult(title=title_of(node_id), status=outcome, node_id=node_id))
    return results


def parse_collected_node_ids(output: str) -> list[str]:
    return [match["node_id"] for line in output.splitlines() if (match := _COLLECTED_LINE.match(line))]


def parse_snapshot_summary(output: str) -> SnapshotSummary:
    unmatched = sum(int(n) for n in _SNAPSHOTS_FAILED.findall(output))
    updated = sum(int(n) for n in _SNAPSHOTS_UPDATED.findall(output))
    return SnapshotSummary(failure=unmatched > 0, unmatched=unmatched, updated=updated)


# 🔼⚙️
