"""Wiring of several independent machines, output of one into input of the next.

Each machine keeps its own memory and queues; this module only moves drained
output values between them. Feedback loops rely on blocking input: a machine
that runs dry returns control and resumes at the same instruction later.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from processor import IntcodeMachine, MachineError


class Pipeline:
    """A row of machines that all run the same program.

    Machine i receives settings[i] as its first input value.
    """

    machines: list[IntcodeMachine]

    def __init__(
        self,
        program: Sequence[int],
        settings: Iterable[int],
        config: dict[str, Any] | None = None,
    ) -> None:
        self.machines = [IntcodeMachine(program, [s], config) for s in settings]
        if not self.machines:
            err = "pipeline needs at least one machine"
            raise ValueError(err)

    def step(self, values: Iterable[int]) -> list[int]:
        """Push `values` through every machine once; return the last machine's output.

        Halted machines are skipped and pass their input through untouched.
        """
        signal = list(values)
        for i, m in enumerate(self.machines):
            if m.is_halted():
                continue
            try:
                m.run(signal)
            except MachineError:
                logging.debug("Pipeline: machine %d failed", i)
                raise
            signal = m.drain_output()
            logging.debug("Pipeline: machine %d -> %s (%s)", i, signal, m.state.value)
        return signal

    def all_halted(self) -> bool:
        return all(m.is_halted() for m in self.machines)

    @property
    def last(self) -> IntcodeMachine:
        return self.machines[-1]


def run_chain(
    program: Sequence[int],
    settings: Iterable[int],
    signal: int = 0,
    config: dict[str, Any] | None = None,
) -> int:
    """Run the machines once in series and return the final output value."""
    out = Pipeline(program, settings, config).step([signal])
    if not out:
        err = "last machine produced no output"
        raise ValueError(err)
    return out[-1]


def run_feedback_loop(
    program: Sequence[int],
    settings: Iterable[int],
    signal: int = 0,
    config: dict[str, Any] | None = None,
) -> int:
    """Feed the last machine's output back into the first until the last halts.

    Returns the last value the final machine emitted.
    """
    pipe = Pipeline(program, settings, config)
    values = [signal]
    last_value: int | None = None
    while not pipe.last.is_halted():
        out = pipe.step(values)
        if not out and not pipe.last.is_halted():
            err = "feedback loop stalled: no machine produced output"
            raise ValueError(err)
        if out:
            last_value = out[-1]
        values = out
    if last_value is None:
        err = "last machine produced no output"
        raise ValueError(err)
    return last_value
