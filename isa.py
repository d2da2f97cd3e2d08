"""ISA: opcodes, addressing modes and instruction-word helpers."""

from enum import IntEnum


class OpCode(IntEnum):
    """Keeps opcodes from all operations (low two decimal digits of a word)."""

    ADD = 1  # c = a + b
    MUL = 2  # c = a * b
    INPUT = 3  # a = input.popleft()
    OUTPUT = 4  # output.append(a)
    JUMP_IF_TRUE = 5  # if a != 0: PC = b
    JUMP_IF_FALSE = 6  # if a == 0: PC = b
    LESS_THAN = 7  # c = int(a < b)
    EQUALS = 8  # c = int(a == b)
    ADJUST_BASE = 9  # relative_base += a
    HALT = 99


class Mode(IntEnum):
    """Addressing mode of a single parameter."""

    POSITIONAL = 0
    IMMEDIATE = 1
    RELATIVE = 2


# number of parameters per opcode; instruction width is this + 1
PARAM_COUNT: dict[OpCode, int] = {
    OpCode.ADD: 3,
    OpCode.MUL: 3,
    OpCode.INPUT: 1,
    OpCode.OUTPUT: 1,
    OpCode.JUMP_IF_TRUE: 2,
    OpCode.JUMP_IF_FALSE: 2,
    OpCode.LESS_THAN: 3,
    OpCode.EQUALS: 3,
    OpCode.ADJUST_BASE: 1,
    OpCode.HALT: 0,
}

MNEMONICS: dict[OpCode, str] = {
    OpCode.ADD: "ADD",
    OpCode.MUL: "MUL",
    OpCode.INPUT: "INP",
    OpCode.OUTPUT: "OUT",
    OpCode.JUMP_IF_TRUE: "JNZ",
    OpCode.JUMP_IF_FALSE: "JZ",
    OpCode.LESS_THAN: "LESS",
    OpCode.EQUALS: "EQ",
    OpCode.ADJUST_BASE: "ARB",
    OpCode.HALT: "HALT",
}


def width(opcode: OpCode) -> int:
    """Return instruction width in cells (opcode word + parameters)."""
    return PARAM_COUNT[opcode] + 1


def decode_opcode(word: int) -> OpCode:
    """Decode the opcode from an instruction word.

    Raises ValueError if the word is negative or its low two digits are not
    a known opcode.
    """
    if word < 0:
        err = f"negative instruction word {word}"
        raise ValueError(err)
    return OpCode(word % 100)


def param_mode(word: int, param: int) -> int:
    """Return the raw mode digit of 0-based parameter `param` of `word`.

    The value is not validated here; callers map it onto `Mode`.
    """
    return word // 10 ** (param + 2) % 10


def mode_name(mode: int) -> str:
    """Get a human-readable mode name."""
    try:
        return Mode(mode).name.lower()
    except ValueError:
        return "illegal mode"


def mnemonic(word: int) -> str:
    """Get operation mnemonic for a raw instruction word."""
    try:
        return MNEMONICS[decode_opcode(word)]
    except ValueError:
        return "???"
