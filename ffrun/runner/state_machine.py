"""Run state machine — enforces valid lifecycle transitions of one run."""

from __future__ import annotations

from ffrun.types import RunId, RunState, TransitionCallback
from ffrun.exceptions import RunStateError

# Valid state transitions: the life of one supervised process
VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.RESOLVING},
    RunState.RESOLVING: {RunState.PRE_HOOK, RunState.FAILED},
    RunState.PRE_HOOK: {RunState.STARTING, RunState.FAILED},
    RunState.STARTING: {RunState.RUNNING, RunState.FAILED},
    RunState.RUNNING: {RunState.CANCEL_REQUESTED, RunState.WAITED},
    RunState.CANCEL_REQUESTED: {RunState.TERMINATING},
    # Termination is only a hint; the process must still be waited for
    RunState.TERMINATING: {RunState.WAITED},
    RunState.WAITED: {RunState.DONE, RunState.FAILED},
    RunState.DONE: set(),  # terminal
    RunState.FAILED: set(),  # terminal
}


class RunStateMachine:
    """Tracks the lifecycle state of a single run.

    Enforces that only valid transitions occur and notifies listeners
    on every state change.
    """

    def __init__(self, run_id: RunId, listeners: tuple[TransitionCallback, ...] = ()):
        self.run_id = run_id
        self._state = RunState.IDLE
        self._listeners: list[TransitionCallback] = list(listeners)
        self._history: list[RunState] = [RunState.IDLE]

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def history(self) -> list[RunState]:
        return list(self._history)

    @property
    def finished(self) -> bool:
        return not VALID_TRANSITIONS[self._state]

    def can_transition(self, target: RunState) -> bool:
        return target in VALID_TRANSITIONS.get(self._state, set())

    async def transition(self, target: RunState) -> None:
        if not self.can_transition(target):
            raise RunStateError(
                f"Cannot transition run {self.run_id} "
                f"from {self._state.value} to {target.value}"
            )
        old = self._state
        self._state = target
        self._history.append(target)
        for listener in self._listeners:
            await listener(self.run_id, old, target)

    def on_transition(self, callback: TransitionCallback) -> None:
        self._listeners.append(callback)
