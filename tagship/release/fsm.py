from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from tagship.core.result import Err, Ok, Result

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


StepOutcome = StepAdvance[S] | StepFinish
StepHandler = Callable[[S], StepOutcome[S]]
GetStep = Callable[[S], str]


FINISH = StepFinish()


def advance(session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S]],
) -> Result[S, str]:
    """Dispatch ``handlers[get_step(state)]`` until one returns FINISH.

    Returns the last state, or an error naming a step without a handler.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(f"no handler for step: {step}")

        outcome = handler(current)
        if isinstance(outcome, StepFinish):
            return Ok(current)

        current = outcome.session
