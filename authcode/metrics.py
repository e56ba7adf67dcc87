import sys
import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class StepMetric:
    step: str
    start_time: float
    end_time: Optional[float] = None
    success: bool = False
    error: Optional[str] = None


@dataclass
class MetricsTracker:
    start_time: float = field(default_factory=time.time)
    steps: list[StepMetric] = field(default_factory=list)

    def start_step(self, step: str) -> None:
        self.steps.append(StepMetric(step=step, start_time=time.time()))

    def end_step(self, success: bool, error: Optional[str] = None) -> None:
        if not self.steps or self.steps[-1].end_time is not None:
            return
        current = self.steps[-1]
        current.end_time = time.time()
        current.success = success
        current.error = error

    def get_summary(self) -> dict:
        successful = sum(1 for s in self.steps if s.success)
        failed = [s.step for s in self.steps if s.end_time is not None and not s.success]
        return {
            "total_steps": len(self.steps),
            "successful": successful,
            "failed_step": failed[0] if failed else None,
            "total_time_seconds": time.time() - self.start_time,
            "per_step": [
                {
                    "step": s.step,
                    "time_seconds": round((s.end_time or time.time()) - s.start_time, 2),
                    "success": s.success,
                    "error": s.error,
                }
                for s in self.steps
            ],
        }

    def print_summary(self) -> None:
        s = self.get_summary()
        out = sys.stderr
        print(f"\n{'='*50}", file=out)
        print("CONSENT FLOW - STEPS", file=out)
        print(f"{'='*50}", file=out)
        for step in s["per_step"]:
            status = "ok" if step["success"] else f"FAILED ({step['error']})"
            print(f"  {step['step']:<32} {step['time_seconds']:>6.2f}s  {status}", file=out)
        print(f"Total time: {s['total_time_seconds']:.1f}s", file=out)
        print(f"{'='*50}\n", file=out, flush=True)
