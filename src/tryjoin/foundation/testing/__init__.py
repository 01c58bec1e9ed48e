"""Testing utilities: scripted operands and cycle-by-cycle drivers."""

from .scripted import RecordingWaker, ScriptedOperand, poll_until_ready

__all__ = ["RecordingWaker", "ScriptedOperand", "poll_until_ready"]
