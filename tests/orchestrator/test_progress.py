"""Unit tests for ProgressStepTracker."""

from __future__ import annotations

import pytest

from launchdeck.orchestrator.execution.progress import DEFAULT_STEPS, ProgressStepTracker


@pytest.fixture
def tracker() -> ProgressStepTracker:
    return ProgressStepTracker()


def test_initial_state(tracker: ProgressStepTracker) -> None:
    assert tracker.current_index == 0
    assert len(tracker) == 3
    snapshot = tracker.snapshot()
    assert [s.label for s in snapshot] == [label for label, _ in DEFAULT_STEPS]
    assert all(s.logs == "" and not s.has_error for s in snapshot)


def test_advance_is_monotonic(tracker: ProgressStepTracker) -> None:
    assert tracker.advance(1) is True
    assert tracker.advance(0) is False
    assert tracker.current_index == 1

    assert tracker.advance(1) is False
    assert tracker.advance(2) is True
    assert tracker.current_index == 2


def test_advance_out_of_range(tracker: ProgressStepTracker) -> None:
    with pytest.raises(IndexError):
        tracker.advance(3)
    assert tracker.current_index == 0


def test_append_log_joins_with_newlines(tracker: ProgressStepTracker) -> None:
    tracker.append_log(1, "first")
    assert tracker.snapshot()[1].logs == "first"

    tracker.append_log(1, "second")
    assert tracker.snapshot()[1].logs == "first\nsecond"
    assert tracker.snapshot()[0].logs == ""


def test_mark_error(tracker: ProgressStepTracker) -> None:
    tracker.mark_error(2)
    assert [s.has_error for s in tracker.snapshot()] == [False, False, True]
    assert tracker.has_error


def test_reset(tracker: ProgressStepTracker) -> None:
    tracker.advance(2)
    tracker.append_log(0, "pulling")
    tracker.mark_error(0)

    tracker.reset()

    assert tracker.current_index == 0
    assert not tracker.has_error
    assert all(s.logs == "" for s in tracker.snapshot())


def test_label_for_current_and_upcoming(tracker: ProgressStepTracker) -> None:
    assert tracker.label_for(0) == "Retrieving the stack's image and launching it"
    assert tracker.label_for(1) == "Starting workspace agent"

    tracker.advance(1)
    assert tracker.label_for(1) == "Agents provide RESTful services like intellisense and SSH"
    assert tracker.label_for(2) == "Workspace started"


def test_snapshot_is_detached(tracker: ProgressStepTracker) -> None:
    snapshot = tracker.snapshot()
    tracker.append_log(0, "later")
    assert snapshot[0].logs == ""


def test_custom_steps() -> None:
    tracker = ProgressStepTracker((("Only", "Doing it"),))
    assert tracker.label_for(0) == "Doing it"

    with pytest.raises(ValueError, match="At least one"):
        ProgressStepTracker(())
