from __future__ import annotations

from dataclasses import dataclass, replace

from tagship.core.result import Err, Ok
from tagship.release.fsm import FINISH, StepOutcome, advance, run_state_machine


@dataclass(frozen=True, slots=True)
class _State:
    step: str
    counter: int


def test_run_state_machine_advances_until_finish() -> None:
    def step_a(s: _State) -> StepOutcome[_State]:
        return advance(replace(s, step="b", counter=s.counter + 1))

    def step_b(s: _State) -> StepOutcome[_State]:
        return FINISH

    result = run_state_machine(
        initial_state=_State(step="a", counter=0),
        get_step=lambda s: s.step,
        handlers={"a": step_a, "b": step_b},
    )

    assert result == Ok(_State(step="b", counter=1))


def test_run_state_machine_unknown_step_fails() -> None:
    result = run_state_machine(
        initial_state=_State(step="missing", counter=0),
        get_step=lambda s: s.step,
        handlers={},
    )

    assert isinstance(result, Err)
    assert result.error == "no handler for step: missing"
