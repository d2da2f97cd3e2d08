"""Processor (Datapath + ControlUnit), machine facade and CLI wrapper.

Provides Intcode execution with resumable blocking input, logging
initialization and an optional per-instruction trace emitted through
the logging module.
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import Any

from config import ConfigError, load_config
from isa import PARAM_COUNT, Mode, OpCode, decode_opcode, mnemonic, mode_name, param_mode, width

LOGFILE = "processor.log"
_MODES = frozenset(m.value for m in Mode)


class State(Enum):
    """Lifecycle state of a machine."""

    READY = "ready"
    RUNNING = "running"
    BLOCKED = "blocked"
    HALTED = "halted"
    ERRORED = "errored"


class MachineError(Exception):
    """Base class for faults raised while executing a program."""

    pass


class InvalidOpcode(MachineError):
    """Instruction word does not encode a known opcode."""

    pass


class ProgramCounterOverrun(MachineError):
    """Program counter left the memory bounds."""

    pass


class IllegalAddressingMode(MachineError):
    """Unknown mode digit, a write in immediate mode or a parameter the opcode does not have."""

    pass


class AddressOutOfRange(IllegalAddressingMode):
    """Effective address is negative, or past the end with growth disabled."""

    pass


class MachineStateError(MachineError):
    """Machine was asked to run after it halted or errored."""

    pass


def init_logging(logfile: str = LOGFILE, debug: bool = False, console: bool = False) -> None:
    """Configure root logger to write to `logfile`.

    If debug=True set DEBUG level. If console=True also echo logs to stdout.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    lvl = logging.DEBUG if debug else logging.CRITICAL
    root.setLevel(lvl)

    if debug:
        file_fmt = "%(levelname)s %(name)s:%(filename)s:%(lineno)d %(message)s"
    else:
        file_fmt = "%(levelname)-5s %(message)s"

    fh = logging.FileHandler(logfile, mode="w", encoding="utf-8")
    fh.setLevel(lvl)
    fh.setFormatter(logging.Formatter(file_fmt))
    root.addHandler(fh)

    if debug and console:
        ch = logging.StreamHandler(sys.stdout)
        ch.setLevel(lvl)
        ch.setFormatter(logging.Formatter("%(levelname)5s %(message)s"))
        root.addHandler(ch)


class Datapath:
    """Datapath (memory + registers + I/O queues) for the VM."""

    memory: list[int]
    grow_memory: bool
    max_memory: int

    PC: int
    relative_base: int

    input_queue: deque[int]
    output_queue: list[int]

    def __init__(
        self,
        program: Iterable[int],
        initial_input: Iterable[int] = (),
        min_memory: int = 8192,
        grow_memory: bool = True,
        max_memory: int = 2**24,
    ) -> None:
        """Copy `program` into zero-padded memory and set up registers and queues."""
        image = [int(v) for v in program]
        self.memory = image + [0] * max(0, min_memory - len(image))
        self.grow_memory = grow_memory
        self.max_memory = max_memory

        self.PC = 0
        self.relative_base = 0

        self.input_queue = deque(int(v) for v in initial_input)
        self.output_queue = []
        logging.debug("Datapath: %d program cells, memory size %d", len(image), len(self.memory))

    def check_addr(self, addr: int) -> None:
        if addr < 0:
            err = f"negative address {addr}"
            raise AddressOutOfRange(err)
        if addr < len(self.memory):
            return
        if not self.grow_memory:
            err = f"address {addr} out of memory (size {len(self.memory)})"
            raise AddressOutOfRange(err)
        if addr >= self.max_memory:
            err = f"address {addr} beyond memory limit {self.max_memory}"
            raise AddressOutOfRange(err)

    def read(self, addr: int) -> int:
        """Read a cell; unallocated cells read as 0 when memory may grow."""
        self.check_addr(addr)
        if addr >= len(self.memory):
            return 0
        return self.memory[addr]

    def write(self, addr: int, value: int) -> None:
        """Write a cell, extending memory with zeros if needed."""
        self.check_addr(addr)
        if addr >= len(self.memory):
            logging.debug("Datapath: memory grows %d -> %d", len(self.memory), addr + 1)
            self.memory.extend([0] * (addr + 1 - len(self.memory)))
        self.memory[addr] = value

    def push_input(self, values: Iterable[int]) -> None:
        self.input_queue.extend(int(v) for v in values)

    def pop_input(self) -> int | None:
        """Pop the oldest input value, or None if the queue is empty."""
        if not self.input_queue:
            return None
        return self.input_queue.popleft()

    def push_output(self, value: int) -> None:
        self.output_queue.append(value)

    def drain_output(self) -> list[int]:
        """Return buffered output and start a fresh buffer."""
        out, self.output_queue = self.output_queue, []
        return out


class ControlUnit:
    """Control unit implementing the FETCH-DECODE-EXEC loop for the Datapath."""

    dp: Datapath
    trace: bool

    def __init__(self, dp: Datapath, trace: bool = False) -> None:
        """Create a ControlUnit bound to `dp`."""
        self.dp = dp
        self.trace = trace

    # --- addressing ---
    def _resolve(self, param: int) -> tuple[int, int]:
        """Return (mode, literal) of 0-based `param` of the instruction at PC."""
        dp = self.dp
        word = dp.memory[dp.PC]
        opcode = decode_opcode(word)
        if param >= PARAM_COUNT[opcode]:
            err = f"{opcode.name} has no parameter {param} (PC {dp.PC})"
            raise IllegalAddressingMode(err)
        mode = param_mode(word, param)
        if mode not in _MODES:
            err = f"illegal mode {mode} for parameter {param} of word {word} at PC {dp.PC}"
            raise IllegalAddressingMode(err)
        return mode, dp.read(dp.PC + param + 1)

    def address_of(self, param: int) -> int:
        """Effective address of a parameter (write target or indirect read)."""
        mode, literal = self._resolve(param)
        if mode == Mode.POSITIONAL:
            return literal
        if mode == Mode.RELATIVE:
            return self.dp.relative_base + literal
        err = f"parameter {param} at PC {self.dp.PC} is immediate and cannot be a write target"
        raise IllegalAddressingMode(err)

    def read_param(self, param: int) -> int:
        mode, literal = self._resolve(param)
        if mode == Mode.IMMEDIATE:
            val = literal
        else:
            val = self.dp.read(self.address_of(param))
        if self.trace:
            logging.debug("- Param %d: mode %d %s, value %d", param, mode, mode_name(mode), val)
        return val

    def write_param(self, param: int, value: int) -> None:
        addr = self.address_of(param)
        if self.trace:
            mode = param_mode(self.dp.memory[self.dp.PC], param)
            logging.debug("- Param %d: mode %d %s, [%d] <- %d", param, mode, mode_name(mode), addr, value)
        self.dp.write(addr, value)

    def _log_step(self, word: int) -> None:
        dp = self.dp
        logging.debug(
            "PC: %5d WORD: %6d INSTR: %-4s REL_BASE: %5d IN: %d OUT: %d",
            dp.PC,
            word,
            mnemonic(word),
            dp.relative_base,
            len(dp.input_queue),
            len(dp.output_queue),
        )

    # --- execution ---
    def fetch(self) -> OpCode:
        """Bounds-check PC and decode the instruction there."""
        dp = self.dp
        if not 0 <= dp.PC < len(dp.memory):
            err = f"program counter {dp.PC} outside memory (size {len(dp.memory)})"
            raise ProgramCounterOverrun(err)
        word = dp.memory[dp.PC]
        if self.trace:
            self._log_step(word)
        try:
            return decode_opcode(word)
        except ValueError as e:
            err = f"invalid opcode {word} at PC {dp.PC}"
            raise InvalidOpcode(err) from e

    def run(self) -> State:
        """Execute until halt or until the input instruction starves."""
        while True:
            opcode = self.fetch()
            if opcode == OpCode.HALT:
                logging.debug("HALT encountered at PC %d", self.dp.PC)
                return State.HALTED
            if not self.exec(opcode):
                logging.debug("INPUT: queue empty at PC %d -> blocked", self.dp.PC)
                return State.BLOCKED

    def exec(self, opcode: OpCode) -> bool:  # noqa: C901
        """Execute one instruction; return False if it blocked on input."""
        dp = self.dp

        if opcode in (OpCode.ADD, OpCode.MUL, OpCode.LESS_THAN, OpCode.EQUALS):
            a = self.read_param(0)
            b = self.read_param(1)
            if opcode == OpCode.ADD:
                res = a + b
            elif opcode == OpCode.MUL:
                res = a * b
            elif opcode == OpCode.LESS_THAN:
                res = int(a < b)
            else:
                res = int(a == b)
            self.write_param(2, res)

        elif opcode == OpCode.INPUT:
            # nothing may change before we know a value is available
            if not dp.input_queue:
                return False
            addr = self.address_of(0)
            dp.check_addr(addr)
            val = dp.pop_input()
            if self.trace:
                logging.debug("- Param 0: [%d] <- input %d", addr, val)
            dp.write(addr, val)

        elif opcode == OpCode.OUTPUT:
            dp.push_output(self.read_param(0))

        elif opcode in (OpCode.JUMP_IF_TRUE, OpCode.JUMP_IF_FALSE):
            cond = self.read_param(0)
            target = self.read_param(1)
            if (cond != 0) == (opcode == OpCode.JUMP_IF_TRUE):
                dp.PC = target
                return True

        elif opcode == OpCode.ADJUST_BASE:
            dp.relative_base += self.read_param(0)
            if self.trace:
                logging.debug("ARB -> relative base %d", dp.relative_base)

        dp.PC += width(opcode)
        return True


class IntcodeMachine:
    """One independent Intcode machine: program, registers and I/O queues.

    Drive it with `run(values)` until `is_halted()`; collect results with
    `drain_output()`. A run that finds no input returns State.BLOCKED and
    resumes at the same instruction on the next call.
    """

    def __init__(
        self,
        program: Iterable[int],
        initial_input: Iterable[int] = (),
        config: dict[str, Any] | None = None,
    ) -> None:
        """Create a machine; `config` is overlaid on config.DEFAULTS."""
        self.config = load_config(config)
        self._image = [int(v) for v in program]
        self.dp = Datapath(
            self._image,
            initial_input,
            min_memory=self.config["min_memory"],
            grow_memory=self.config["grow_memory"],
            max_memory=self.config["max_memory"],
        )
        self.cu = ControlUnit(self.dp, trace=self.config["trace"])
        self.state = State.READY

    @property
    def trace(self) -> bool:
        return self.cu.trace

    @trace.setter
    def trace(self, enabled: bool) -> None:
        self.cu.trace = enabled

    @property
    def memory(self) -> list[int]:
        return self.dp.memory

    @property
    def pc(self) -> int:
        return self.dp.PC

    @property
    def relative_base(self) -> int:
        return self.dp.relative_base

    def run(self, additional_input: Iterable[int] = ()) -> State:
        """Queue `additional_input` and execute until halted or blocked.

        Returns State.HALTED or State.BLOCKED. Raises a MachineError subclass
        on faults; the machine is then left in State.ERRORED.
        """
        if self.state in (State.HALTED, State.ERRORED):
            err = f"machine is {self.state.value}; reset() it before running again"
            raise MachineStateError(err)
        self.dp.push_input(additional_input)
        self.state = State.RUNNING
        try:
            self.state = self.cu.run()
        except MachineError as e:
            self.state = State.ERRORED
            logging.debug("Machine error: %s", e)
            raise
        return self.state

    def drain_output(self) -> list[int]:
        return self.dp.drain_output()

    def is_halted(self) -> bool:
        return self.state is State.HALTED

    def reset(self) -> None:
        """Rewind to PC 0 with empty queues.

        Memory is kept as-is unless `restore_on_reset` is configured, in which
        case the program image from construction is copied back.
        """
        dp = self.dp
        dp.PC = 0
        dp.relative_base = 0
        dp.input_queue.clear()
        dp.output_queue = []
        if self.config["restore_on_reset"]:
            size = max(len(self._image), self.config["min_memory"])
            dp.memory = self._image + [0] * (size - len(self._image))
        self.state = State.READY
        logging.debug("Machine reset (memory restored: %s)", self.config["restore_on_reset"])


# ---------- Public API ----------
def run_program(
    program: Iterable[int],
    inputs: Iterable[int] = (),
    config: dict[str, Any] | None = None,
) -> tuple[list[int], State, IntcodeMachine]:
    """Run a program once with `inputs` and return (output, state, machine)."""
    machine = IntcodeMachine(program, inputs, config)
    state = machine.run()
    return machine.drain_output(), state, machine


# ---------- CLI ----------
if __name__ == "__main__":
    import argparse

    from parser import ParseError, load_program

    ap = argparse.ArgumentParser(description="Intcode VM runner. Prints every output value on its own line.")
    ap.add_argument("program", help="program file (comma-separated integers)")
    ap.add_argument("--input", type=int, nargs="*", default=[], help="input values, in order")
    ap.add_argument("--config", help="path to yaml config", default=None)

    help_debug = "enable debug logging to logfile (per-instruction trace)."
    help_logfile = "path to processor log"
    help_console = "also echo logs to console (only when --debug)"
    ap.add_argument("--debug", action="store_true", help=help_debug)
    ap.add_argument("--logfile", default=LOGFILE, help=help_logfile)
    ap.add_argument("--console", action="store_true", help=help_console)
    args = ap.parse_args()

    init_logging(logfile=args.logfile, debug=args.debug, console=args.console)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print("Bad config:", e, file=sys.stderr)
        sys.exit(2)
    if args.debug:
        cfg["trace"] = True

    if not Path(args.program).exists():
        print("Program file not found:", args.program, file=sys.stderr)
        sys.exit(2)
    try:
        prog = load_program(args.program)
        out, state, _ = run_program(prog, args.input, cfg)
    except ParseError as e:
        print("Bad program:", e, file=sys.stderr)
        sys.exit(2)
    except MachineError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(2)

    for v in out:
        sys.stdout.write(f"{v}\n")
    if state is State.BLOCKED:
        print("BLOCKED: program is waiting for more input", file=sys.stderr)
        sys.exit(1)
