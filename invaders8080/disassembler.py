"""Intel 8080 disassembler."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator, Sequence

_REGS = "BCDEHLMA"
_ALU_OPS = ("ADD", "ADC", "SUB", "SBB", "ANA", "XRA", "ORA", "CMP")

_LOW_BLOCK = (
    "NOP", "LXI\tB,#${adr}", "STAX\tB", "INX\tB",
    "INR\tB", "DCR\tB", "MVI\tB,#${d8}", "RLC",
    "NOP", "DAD\tB", "LDAX\tB", "DCX\tB",
    "INR\tC", "DCR\tC", "MVI\tC,#${d8}", "RRC",
    "NOP", "LXI\tD,#${adr}", "STAX\tD", "INX\tD",
    "INR\tD", "DCR\tD", "MVI\tD,#${d8}", "RAL",
    "NOP", "DAD\tD", "LDAX\tD", "DCX\tD",
    "INR\tE", "DCR\tE", "MVI\tE,#${d8}", "RAR",
    "NOP", "LXI\tH,#${adr}", "SHLD\t#${adr}", "INX\tH",
    "INR\tH", "DCR\tH", "MVI\tH,#${d8}", "DAA",
    "NOP", "DAD\tH", "LHLD\t#${adr}", "DCX\tH",
    "INR\tL", "DCR\tL", "MVI\tL,#${d8}", "CMA",
    "NOP", "LXI\tSP,#${adr}", "STA\t#${adr}", "INX\tSP",
    "INR\tM", "DCR\tM", "MVI\tM,#${d8}", "STC",
    "NOP", "DAD\tSP", "LDA\t#${adr}", "DCX\tSP",
    "INR\tA", "DCR\tA", "MVI\tA,#${d8}", "CMC",
)

_HIGH_BLOCK = (
    "RNZ", "POP\tB", "JNZ\t#${adr}", "JMP\t#${adr}",
    "CNZ\t#${adr}", "PUSH\tB", "ADI\t#${d8}", "RST\t0",
    "RZ", "RET", "JZ\t#${adr}", "NOP",
    "CZ\t#${adr}", "CALL\t#${adr}", "ACI\t#${d8}", "RST\t1",
    "RNC", "POP\tD", "JNC\t#${adr}", "OUT\t#${d8}",
    "CNC\t#${adr}", "PUSH\tD", "SUI\t#${d8}", "RST\t2",
    "RC", "NOP", "JC\t#${adr}", "IN\t#${d8}",
    "CC\t#${adr}", "NOP", "SBI\t#${d8}", "RST\t3",
    "RPO", "POP\tH", "JPO\t#${adr}", "XTHL",
    "CPO\t#${adr}", "PUSH\tH", "ANI\t#${d8}", "RST\t4",
    "RPE", "PCHL", "JPE\t#${adr}", "XCHG",
    "CPE\t#${adr}", "NOP", "XRI\t#${d8}", "RST\t5",
    "RP", "POP\tPSW", "JP\t#${adr}", "DI",
    "CP\t#${adr}", "PUSH\tPSW", "ORI\t#${d8}", "RST\t6",
    "RM", "SPHL", "JM\t#${adr}", "EI",
    "CM\t#${adr}", "NOP", "CPI\t#${d8}", "RST\t7",
)


def _mov_block() -> list[str]:
    templates = [f"MOV\t{dst},{src}" for dst in _REGS for src in _REGS]
    templates[0x36] = "HLT"
    # The listing this table follows names 0x77 as "MOV H,A".
    templates[0x37] = "MOV\tH,A"
    return templates


def _alu_block() -> list[str]:
    return [f"{op}\t{reg}" for op in _ALU_OPS for reg in _REGS]


def _size_of(template: str) -> int:
    if "{adr}" in template:
        return 3
    if "{d8}" in template:
        return 2
    return 1


_TEMPLATES: tuple[str, ...] = (*_LOW_BLOCK, *_mov_block(), *_alu_block(), *_HIGH_BLOCK)
_SIZES: tuple[int, ...] = tuple(_size_of(t) for t in _TEMPLATES)


def disassemble_op(code: Sequence[int], pc: int) -> tuple[str, int]:
    """Decode the instruction at ``pc``.

    Returns the listing line (address in four hex digits, then the
    mnemonic) and the instruction's length in bytes.
    """
    if not 0 <= pc < len(code):
        raise IndexError(f"address {pc:#06x} is outside the code buffer")
    opcode = code[pc]
    template = _TEMPLATES[opcode]
    size = _SIZES[opcode]
    if pc + size > len(code):
        raise ValueError(
            f"instruction at {pc:04x} needs {size} bytes but the buffer ends"
        )
    operands = code[pc + 1:pc + size]
    fields = {}
    if size == 2:
        fields["d8"] = f"{operands[0]:02x}"
    elif size == 3:
        fields["adr"] = f"{operands[1]:02x}{operands[0]:02x}"
    return f"{pc:04x} {template.format(**fields)}", size


def disassemble(code: Sequence[int]) -> Iterator[str]:
    """Yield a listing line for each instruction in ``code``, in order."""
    pc = 0
    while pc < len(code):
        line, size = disassemble_op(code, pc)
        yield line
        pc += size


def main(argv: Sequence[str] | None = None) -> int:
    """Print a listing of a ROM image."""
    parser = argparse.ArgumentParser(description="Disassemble an 8080 ROM image.")
    parser.add_argument("rom", help="path of the ROM image")
    args = parser.parse_args(argv)
    try:
        with open(args.rom, "rb") as handle:
            code = handle.read()
    except OSError:
        print(f"Couldn't open file {args.rom}")
        return 1
    try:
        for line in disassemble(code):
            print(line)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())