"""Tests for holding Ctrl-C during state-changing steps"""
import os
import signal

import pytest

from relay_cli.exceptions import WorkflowCancelled
from relay_cli.utils.signals import defer_interrupts
from relay_cli.workflows.base import Step, Workflow


def interrupt():
    os.kill(os.getpid(), signal.SIGINT)


@pytest.fixture(autouse=True)
def default_sigint():
    """Run each test with Python's KeyboardInterrupt handler installed."""
    previous = signal.signal(signal.SIGINT, signal.default_int_handler)
    yield
    signal.signal(signal.SIGINT, previous)


class CommitLikeWorkflow(Workflow):
    """Two steps; only the second changes external state."""

    name = "commit-like"
    STEPS = (Step.COLLECT, Step.COMMIT)
    MUTATING = frozenset({Step.COMMIT})

    def __init__(self, interrupt_during=None):
        super().__init__(ctx=None)
        self.interrupt_during = interrupt_during
        self.finished = []

    def execute(self):
        for step in self.STEPS:
            with self.stage(step):
                if step == self.interrupt_during:
                    interrupt()
                self.finished.append(step)


class TestDeferInterrupts:
    """Test the interrupt guard itself."""

    def test_body_finishes_then_cancels(self):
        done = []
        with pytest.raises(WorkflowCancelled):
            with defer_interrupts("commit"):
                interrupt()
                done.append(True)
        assert done == [True]

    def test_no_interrupt(self):
        with defer_interrupts("commit"):
            pass

    def test_previous_handler_restored(self):
        before = signal.getsignal(signal.SIGINT)

        with pytest.raises(WorkflowCancelled):
            with defer_interrupts("commit"):
                assert signal.getsignal(signal.SIGINT) is not before
                interrupt()

        assert signal.getsignal(signal.SIGINT) is before


class TestWorkflowInterrupts:
    """Test Ctrl-C handling per step kind."""

    def test_mutating_step_completes(self):
        workflow = CommitLikeWorkflow(interrupt_during=Step.COMMIT)
        result = workflow.run()

        assert workflow.finished == [Step.COLLECT, Step.COMMIT]
        assert result.step == Step.ERROR
        assert isinstance(result.error, WorkflowCancelled)

    def test_other_step_cancels_immediately(self):
        workflow = CommitLikeWorkflow(interrupt_during=Step.COLLECT)
        result = workflow.run()

        assert workflow.finished == []
        assert result.step == Step.ERROR
        assert isinstance(result.error, WorkflowCancelled)
        assert signal.getsignal(signal.SIGINT) is signal.default_int_handler

    def test_uninterrupted(self):
        workflow = CommitLikeWorkflow()
        assert workflow.run().ok
        assert workflow.finished == [Step.COLLECT, Step.COMMIT]
