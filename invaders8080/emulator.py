"""Intel 8080 CPU state and instruction emulation for the Space Invaders ROM."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from invaders8080.disassembler import disassemble_op

MEMORY_SIZE = 0x10000
RAM_START = 0x2000
RAM_END = 0x4000

# ROM images in the order and at the addresses the game expects them.
ROM_LAYOUT = (
    ("invaders.h", 0x0000),
    ("invaders.g", 0x0800),
    ("invaders.f", 0x1000),
    ("invaders.e", 0x1800),
)

# Opcodes that execute without touching registers, flags or memory.
_NO_OPERATION = frozenset({0x00, 0x39})


class UnimplementedInstruction(Exception):
    """Raised when the CPU meets an opcode it cannot execute."""

    def __init__(self, opcode: int, address: int) -> None:
        super().__init__(f"unimplemented instruction {opcode:02x} at {address:04x}")
        self.opcode = opcode
        self.address = address


def flag_z(value: int) -> bool:
    """Zero flag: set when the value is zero."""
    return value == 0


def flag_s(value: int) -> bool:
    """Sign flag: set when bit 7 of the value is set."""
    return (value & 0x80) == 0x80


def flag_p(value: int) -> bool:
    """Parity flag: set when the low byte has an odd number of one bits."""
    value ^= value >> 4
    value ^= value >> 2
    value ^= value >> 1
    return bool(value & 1)


@dataclass
class ConditionCodes:
    """The 8080 condition flags."""

    z: bool = False
    s: bool = False
    p: bool = False
    cy: bool = False
    ac: bool = False


_Handler = Callable[["State8080", int], None]
_HANDLERS: dict[int, _Handler] = {}


def _op(*opcodes: int) -> Callable[[_Handler], _Handler]:
    def register(handler: _Handler) -> _Handler:
        for opcode in opcodes:
            _HANDLERS[opcode] = handler
        return handler

    return register


@dataclass
class State8080:
    """Registers, flags and 64 KiB of memory of an 8080 CPU."""

    a: int = 0
    b: int = 0
    c: int = 0
    d: int = 0
    e: int = 0
    h: int = 0
    l: int = 0  # noqa: E741
    sp: int = 0
    pc: int = 0
    memory: bytearray = field(default_factory=lambda: bytearray(MEMORY_SIZE))
    cc: ConditionCodes = field(default_factory=ConditionCodes)
    int_enable: bool = False
    debug: bool = False

    def emulate_op(self) -> None:
        """Execute the instruction at ``pc``.

        Raises UnimplementedInstruction, with ``pc`` left on the opcode,
        for an opcode the emulator does not handle.
        """
        at = self.pc
        opcode = self.memory[at]
        if self.debug:
            line, _ = disassemble_op(self.memory, at)
            print(line, end=" ")
        self.pc = (self.pc + 1) & 0xFFFF
        if opcode not in _NO_OPERATION:
            handler = _HANDLERS.get(opcode)
            if handler is None:
                self.pc = at
                raise UnimplementedInstruction(opcode, at)
            handler(self, at)
        if self.debug:
            print(self._trace_line())

    def load_file(self, filename: str | Path, offset: int) -> None:
        """Copy the contents of a file into memory starting at ``offset``."""
        data = Path(filename).read_bytes()
        if offset < 0 or offset + len(data) > MEMORY_SIZE:
            raise ValueError(
                f"{filename} ({len(data)} bytes) does not fit in memory at {offset:#06x}"
            )
        self.memory[offset:offset + len(data)] = data

    # Memory helpers

    def _read(self, address: int) -> int:
        return self.memory[address & 0xFFFF]

    def _write(self, address: int, value: int) -> None:
        address &= 0xFFFF
        if RAM_START <= address <= RAM_END:
            self.memory[address] = value & 0xFF

    def _hl(self) -> int:
        return (self.h << 8) | self.l

    def _read_hl(self) -> int:
        return self._read(self._hl())

    def _write_hl(self, value: int) -> None:
        self._write(self._hl(), value)

    def _push(self, high: int, low: int) -> None:
        self._write(self.sp - 1, high)
        self._write(self.sp - 2, low)
        self.sp = (self.sp - 2) & 0xFFFF

    def _pop(self) -> tuple[int, int]:
        high = self._read(self.sp + 1)
        low = self._read(self.sp)
        self.sp = (self.sp + 2) & 0xFFFF
        return high, low

    def _d8(self, at: int) -> int:
        return self._read(at + 1)

    def _d16(self, at: int) -> int:
        return (self._read(at + 2) << 8) | self._read(at + 1)

    def _advance(self, count: int) -> None:
        self.pc = (self.pc + count) & 0xFFFF

    def _set_zsp(self, value: int) -> None:
        self.cc.z = flag_z(value)
        self.cc.s = flag_s(value)
        self.cc.p = flag_p(value)

    def _dad(self, value: int) -> None:
        result = self._hl() + value
        self.h = (result & 0xFF00) >> 8
        self.l = result & 0xFF
        self.cc.cy = result > 0xFFFF

    def _logic_result(self, value: int) -> None:
        self.a = value & 0xFF
        self.cc.cy = False
        self.cc.ac = False
        self._set_zsp(self.a)

    def _trace_line(self) -> str:
        flags = "".join(
            letter if state else "."
            for letter, state in (
                ("z", self.cc.z),
                ("s", self.cc.s),
                ("p", self.cc.p),
                ("c", self.cc.cy),
                ("a", self.cc.ac),
            )
        )
        return (
            f"State: A ${self.a:02x} B ${self.b:02x} C ${self.c:02x} "
            f"D ${self.d:02x} E ${self.e:02x} H ${self.h:02x} L ${self.l:02x} "
            f"SP {self.sp:04x} PC: {self.pc:02x} Flags: {flags}  "
        )


# Instruction handlers. Each receives the state and the opcode's address;
# ``pc`` already points past the opcode byte.


@_op(0x01)
def _lxi_b(state: State8080, at: int) -> None:
    state.b = state._read(at + 2)
    state.c = state._read(at + 1)
    state._advance(2)


@_op(0x05)
def _dcr_b(state: State8080, at: int) -> None:
    result = (state.b - 1) & 0xFF
    state._set_zsp(result)
    state.b = result


@_op(0x06)
def _mvi_b(state: State8080, at: int) -> None:
    state.b = state._d8(at)
    state._advance(1)


@_op(0x09)
def _dad_b(state: State8080, at: int) -> None:
    state._dad((state.b << 8) | state.c)


@_op(0x0D)
def _dcr_c(state: State8080, at: int) -> None:
    result = (state.c - 1) & 0xFF
    state._set_zsp(result)
    state.c = result


@_op(0x0E)
def _mvi_c(state: State8080, at: int) -> None:
    state.c = state._d8(at)
    state._advance(1)


@_op(0x0F)
def _rrc(state: State8080, at: int) -> None:
    low_bit = state.a & 1
    state.a = (low_bit << 7) | (state.a >> 1)
    state.cc.cy = bool(low_bit)


@_op(0x11)
def _lxi_d(state: State8080, at: int) -> None:
    state.d = state._read(at + 2)
    state.e = state._read(at + 1)
    state._advance(2)


@_op(0x13)
def _inx_d(state: State8080, at: int) -> None:
    state.e = (state.e + 1) & 0xFF
    if state.e == 0:
        state.d = (state.d + 1) & 0xFF


@_op(0x19)
def _dad_d(state: State8080, at: int) -> None:
    state._dad((state.d << 8) | state.e)


@_op(0x1A)
def _ldax_d(state: State8080, at: int) -> None:
    state.a = state._read((state.d << 8) | state.e)


@_op(0x21)
def _lxi_h(state: State8080, at: int) -> None:
    state.h = state._read(at + 2)
    state.l = state._read(at + 1)
    state._advance(2)


@_op(0x23)
def _inx_h(state: State8080, at: int) -> None:
    state.l = (state.l + 1) & 0xFF
    if state.l == 0:
        state.h = (state.h + 1) & 0xFF


@_op(0x26)
def _mvi_h(state: State8080, at: int) -> None:
    state.h = state._d8(at)
    state._advance(1)


@_op(0x29)
def _dad_h(state: State8080, at: int) -> None:
    state._dad(state._hl())


@_op(0x31)
def _lxi_sp(state: State8080, at: int) -> None:
    state.sp = state._d16(at)
    state._advance(2)


@_op(0x32)
def _sta(state: State8080, at: int) -> None:
    state._write(state._d16(at), state.a)
    state._advance(2)


@_op(0x36)
def _mvi_m(state: State8080, at: int) -> None:
    state._write_hl(state._d8(at))
    state._advance(1)


@_op(0x3A)
def _lda(state: State8080, at: int) -> None:
    state.a = state._read(state._d16(at))
    state._advance(2)


@_op(0x3E)
def _mvi_a(state: State8080, at: int) -> None:
    state.a = state._d8(at)
    state._advance(1)


@_op(0x56)
def _mov_d_m(state: State8080, at: int) -> None:
    state.d = state._read_hl()


@_op(0x5E)
def _mov_e_m(state: State8080, at: int) -> None:
    state.e = state._read_hl()


@_op(0x66)
def _mov_h_m(state: State8080, at: int) -> None:
    state.h = state._read_hl()


@_op(0x6F)
def _mov_l_a(state: State8080, at: int) -> None:
    state.l = state.a


@_op(0x77)
def _mov_m_a(state: State8080, at: int) -> None:
    state._write_hl(state.a)


@_op(0x7A)
def _mov_a_d(state: State8080, at: int) -> None:
    state.a = state.d


@_op(0x7B)
def _mov_a_e(state: State8080, at: int) -> None:
    state.a = state.e


@_op(0x7C)
def _mov_a_h(state: State8080, at: int) -> None:
    state.a = state.h


@_op(0x7E)
def _mov_a_m(state: State8080, at: int) -> None:
    state.a = state._read_hl()


@_op(0xA7)
def _ana_a(state: State8080, at: int) -> None:
    state._logic_result(state.a & state.a)


@_op(0xAF)
def _xra_a(state: State8080, at: int) -> None:
    state._logic_result(state.a ^ state.a)


@_op(0xC1)
def _pop_b(state: State8080, at: int) -> None:
    state.b, state.c = state._pop()


@_op(0xC2)
def _jnz(state: State8080, at: int) -> None:
    if not state.cc.z:
        state.pc = state._d16(at)
    else:
        state._advance(2)


@_op(0xC3)
def _jmp(state: State8080, at: int) -> None:
    state.pc = state._d16(at)


@_op(0xC5)
def _push_b(state: State8080, at: int) -> None:
    state._push(state.b, state.c)


@_op(0xC6)
def _adi(state: State8080, at: int) -> None:
    total = state.a + state._d8(at)
    # Zero and sign are taken from the unmasked 16-bit sum.
    state.cc.z = flag_z(total)
    state.cc.s = flag_s(total)
    state.cc.p = flag_p(total & 0xFF)
    state.cc.cy = total > 0xFF
    state.a = total & 0xFF
    state._advance(1)


@_op(0xC9)
def _ret(state: State8080, at: int) -> None:
    state.pc = state._read(state.sp) | (state._read(state.sp + 1) << 8)
    state.sp = (state.sp + 2) & 0xFFFF


@_op(0xCD)
def _call(state: State8080, at: int) -> None:
    ret = (state.pc + 2) & 0xFFFF
    state._write(state.sp - 1, (ret >> 8) & 0xFF)
    state._write(state.sp - 2, ret & 0xFF)
    state.sp = (state.sp - 2) & 0xFFFF
    state.pc = state._d16(at)


@_op(0xD1)
def _pop_d(state: State8080, at: int) -> None:
    state.d, state.e = state._pop()


@_op(0xD3)
def _out(state: State8080, at: int) -> None:
    state._advance(1)


@_op(0xD5)
def _push_d(state: State8080, at: int) -> None:
    state._push(state.d, state.e)


@_op(0xE1)
def _pop_h(state: State8080, at: int) -> None:
    state.h, state.l = state._pop()


@_op(0xE5)
def _push_h(state: State8080, at: int) -> None:
    state._push(state.h, state.l)


@_op(0xE6)
def _ani(state: State8080, at: int) -> None:
    state._logic_result(state.a & state._d8(at))
    state._advance(1)


@_op(0xEB)
def _xchg(state: State8080, at: int) -> None:
    state.d, state.e, state.h, state.l = state.h, state.l, state.d, state.e


@_op(0xF1)
def _pop_psw(state: State8080, at: int) -> None:
    flags = state._read(state.sp)
    state.cc.z = (flags & 0x01) == 0x01
    state.cc.s = (flags & 0x02) == 0x02
    state.cc.p = (flags & 0x04) == 0x04
    # Carry is read back from bits 0 and 2 together, as the game code expects.
    state.cc.cy = (flags & 0x05) == 0x05
    state.cc.ac = (flags & 0x10) == 0x10
    state.a = state._read(state.sp + 1)
    state.sp = (state.sp + 2) & 0xFFFF


@_op(0xF5)
def _push_psw(state: State8080, at: int) -> None:
    flags = (
        int(state.cc.z)
        | int(state.cc.s) << 1
        | int(state.cc.p) << 2
        | int(state.cc.cy) << 3
        | int(state.cc.ac) << 4
    )
    # Written straight to memory, bypassing the RAM window check.
    state.memory[(state.sp - 2) & 0xFFFF] = flags
    state.memory[(state.sp - 1) & 0xFFFF] = state.a
    state.sp = (state.sp - 2) & 0xFFFF


@_op(0xFB)
def _ei(state: State8080, at: int) -> None:
    state.int_enable = True


@_op(0xFE)
def _cpi(state: State8080, at: int) -> None:
    operand = state._d8(at)
    result = (state.a - operand) & 0xFF
    state._set_zsp(result)
    state.cc.cy = state.a < operand
    state._advance(1)


def main(argv: Sequence[str] | None = None) -> int:
    """Load the Space Invaders ROM images and run them."""
    parser = argparse.ArgumentParser(description="Run the Space Invaders ROM on an 8080 emulator.")
    parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="directory holding invaders.h, invaders.g, invaders.f and invaders.e",
    )
    parser.add_argument("--debug", action="store_true", help="trace every instruction")
    args = parser.parse_args(argv)

    state = State8080(debug=args.debug)
    for name, offset in ROM_LAYOUT:
        path = Path(args.directory) / name
        try:
            state.load_file(path, offset)
        except OSError:
            print(f"error: Couldn't open file {path}")
            return 1

    try:
        while True:
            state.emulate_op()
    except UnimplementedInstruction as exc:
        print("Error: Unimplemented instruction")
        print(f"Opcode of error: {exc.opcode:02x}")
        return 1


if __name__ == "__main__":
    sys.exit(main())