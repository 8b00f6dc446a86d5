from eventease.scheduler.sweeps import (
    CompletionSweep,
    LiveTransitionSweep,
    ReminderSweep,
    Sweep,
    SweepResult,
    SweepSupervisor,
    build_supervisor,
)

__all__ = [
    "Sweep",
    "SweepResult",
    "ReminderSweep",
    "LiveTransitionSweep",
    "CompletionSweep",
    "SweepSupervisor",
    "build_supervisor",
]
