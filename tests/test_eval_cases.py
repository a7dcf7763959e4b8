"""Replays the eval cases and enforces the same gates as eval/runner.py."""
from pathlib import Path

import pytest

from eval.metrics import summarize
from eval.runner import classify, read_jsonl

CASES = list(read_jsonl(Path(__file__).resolve().parents[1] / "eval" / "cases.jsonl"))


@pytest.mark.parametrize("case", CASES, ids=[c["id"] for c in CASES])
def test_case(case):
    got, sql = classify(case["raw"])
    assert got == case["expect"]
    for fragment in case.get("contains", []):
        assert fragment in sql


def test_summary_gates():
    results = [classify(c["raw"])[0] for c in CASES]
    correct = sum(1 for c, got in zip(CASES, results) if got == c["expect"])
    unsafe = sum(1 for c, got in zip(CASES, results) if got == "accepted" and c["expect"] != "accepted")

    summary = summarize(len(CASES), correct, unsafe)

    assert summary.unsafe_accepts == 0
    assert summary.safety_rate == 1.0
    assert summary.accuracy >= 0.95


def test_summarize_empty():
    summary = summarize(0, 0, 0)
    assert summary.accuracy == 0.0
    assert summary.safety_rate == 1.0
