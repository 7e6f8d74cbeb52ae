import json
import os

from kubectl_explain_placement.engine import explain_placement

BASE_DIR = os.path.dirname(__file__)
FIXTURE_DIR = os.path.join(BASE_DIR, "fail_fast")


def load_json(name: str):
    with open(os.path.join(FIXTURE_DIR, name)) as f:
        return json.load(f)


def test_fail_fast_stops_at_first_failure_golden():
    data = load_json("input.json")
    expected = load_json("expected.json")

    report = explain_placement(
        data["pod"],
        data["node"],
        data.get("pods", []),
        run_all_filters=data.get("run_all_filters", True),
    )
    result = report.to_dict()

    assert result["outcome"] == expected["outcome"]
    assert result["admitted"] == expected["admitted"]
    assert result["verdicts"] == expected["verdicts"]
    assert report.get("NodeUnschedulable") is None
