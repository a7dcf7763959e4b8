from dataclasses import dataclass

@dataclass
class EvalResult:
    total: int
    correct: int
    accuracy: float
    unsafe_accepts: int
    safety_rate: float

def summarize(total: int, correct: int, unsafe_accepts: int) -> EvalResult:
    acc = (correct / total) if total else 0.0
    srate = ((total - unsafe_accepts) / total) if total else 1.0
    return EvalResult(total=total, correct=correct, accuracy=acc, unsafe_accepts=unsafe_accepts, safety_rate=srate)
