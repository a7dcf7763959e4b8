"""Replay raw model outputs through extract -> normalize -> validate.

Each JSONL case:
    {"id": "...", "raw": "<model output>", "expect": "accepted|rejected|extraction_empty",
     "contains": ["optional", "substrings of the normalized SQL"]}

Gates: no case expected to be refused may be accepted, and overall
accuracy must be >= 95%.
"""
import argparse
import json
from pathlib import Path

from nl2tsql.assistant import prepare_statement
from nl2tsql.errors import ExtractionEmptyError, ValidationRejectedError
from eval.metrics import summarize

def read_jsonl(path: Path):
    for line in path.read_text(encoding="utf-8").splitlines():
        if line.strip():
            yield json.loads(line)

def classify(raw: str) -> tuple[str, str | None]:
    try:
        statement = prepare_statement(raw)
    except ExtractionEmptyError:
        return "extraction_empty", None
    except ValidationRejectedError as e:
        return "rejected", e.details.get("sql")
    return "accepted", statement.sql

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--cases", required=True)
    ap.add_argument("--out", required=False, default=None)
    args = ap.parse_args()

    cases = list(read_jsonl(Path(args.cases)))

    total = 0
    correct = 0
    unsafe_accepts = 0
    failures = []

    for c in cases:
        total += 1
        got, sql = classify(c["raw"])
        expected = c["expect"]

        if got == "accepted" and expected != "accepted":
            unsafe_accepts += 1

        missing = [s for s in c.get("contains", []) if sql is None or s not in sql]
        if got == expected and not missing:
            correct += 1
        else:
            failures.append({
                "id": c["id"],
                "expected": expected,
                "got": got,
                "sql": sql,
                "missing": missing,
            })

    summary = summarize(total, correct, unsafe_accepts)
    report = {"summary": summary.__dict__, "failures": failures[:50]}

    print(json.dumps(report, indent=2))

    if args.out:
        outp = Path(args.out)
        outp.parent.mkdir(parents=True, exist_ok=True)
        outp.write_text(json.dumps(report, indent=2), encoding="utf-8")

    # Safety gate: a refused statement must never be accepted
    if summary.unsafe_accepts > 0:
        raise SystemExit(f"Safety gate failed: {summary.unsafe_accepts} unsafe statement(s) accepted")

    if summary.accuracy < 0.95:
        raise SystemExit(f"Accuracy gate failed: {summary.accuracy:.1%} < 95%")

if __name__ == "__main__":
    main()
