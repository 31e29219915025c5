"""Startup progress steps.

A fixed, ordered list of steps with a monotonic cursor.  The tracker only
holds state; deciding what to render from it is the presentation layer's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ProgressStep:
    label: str
    in_progress_label: str
    logs: list[str] = field(default_factory=list)
    has_error: bool = False

    @property
    def log_text(self) -> str:
        return "\n".join(self.logs)


@dataclass(frozen=True)
class StepSnapshot:
    """Read-only copy of a step handed out to observers."""

    label: str
    logs: str
    has_error: bool


DEFAULT_STEPS: tuple[tuple[str, str], ...] = (
    ("Starting workspace runtime", "Retrieving the stack's image and launching it"),
    ("Starting workspace agent", "Agents provide RESTful services like intellisense and SSH"),
    ("Workspace started", "Opening"),
)

RUNTIME_STEP = 0
AGENT_STEP = 1
STARTED_STEP = 2


class ProgressStepTracker:
    def __init__(self, steps: tuple[tuple[str, str], ...] = DEFAULT_STEPS) -> None:
        if not steps:
            msg = "At least one progress step is required"
            raise ValueError(msg)
        self._steps = [ProgressStep(label=label, in_progress_label=active) for label, active in steps]
        self._current = 0

    def _step(self, index: int) -> ProgressStep:
        if not 0 <= index < len(self._steps):
            msg = f"Step index {index} out of range (0..{len(self._steps) - 1})"
            raise IndexError(msg)
        return self._steps[index]

    @property
    def current_index(self) -> int:
        return self._current

    def __len__(self) -> int:
        return len(self._steps)

    def advance(self, to_index: int) -> bool:
        """Move the cursor forward to ``to_index``.  Never moves it back.

        Returns True if the cursor moved.
        """
        self._step(to_index)
        if to_index <= self._current:
            return False
        self._current = to_index
        return True

    def append_log(self, step_index: int, line: str) -> None:
        self._step(step_index).logs.append(line)

    def mark_error(self, step_index: int) -> None:
        self._step(step_index).has_error = True

    def reset(self) -> None:
        for step in self._steps:
            step.logs.clear()
            step.has_error = False
        self._current = 0

    def label_for(self, step_index: int) -> str:
        """In-progress label for reached steps, pending label for upcoming ones."""
        step = self._step(step_index)
        return step.in_progress_label if self._current >= step_index else step.label

    def snapshot(self) -> list[StepSnapshot]:
        return [StepSnapshot(label=s.label, logs=s.log_text, has_error=s.has_error) for s in self._steps]

    @property
    def has_error(self) -> bool:
        return any(step.has_error for step in self._steps)
