# invaders8080

An Intel 8080 disassembler and a partial 8080 CPU emulator, built around the
Space Invaders arcade ROM. No third-party libraries are needed.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Disassembling a ROM

```
invaders8080-disasm invaders.h
```

Every instruction in the file is printed on its own line: the four-digit
hexadecimal address, a space, then the mnemonic, a tab and the operands, for
example `0000 NOP` or `0003 JMP	#$18d4`. 8-bit immediates are shown as `#$xx`,
16-bit operands as `#$hhll` (high byte first; the bytes are stored low byte
first). Opcodes with no defined instruction are listed as `NOP`.

If the file cannot be opened the command prints `Couldn't open file <path>`
and exits with status 1. If the last instruction in the file is cut short, the
lines before it are printed and the command reports the error and exits with
status 1.

From Python, in `invaders8080.disassembler`:

```python
from invaders8080.disassembler import disassemble_op, disassemble

line, size = disassemble_op(bytes([0xC3, 0xD4, 0x18]), 0)
# line == "0000 JMP\t#$18d4", size == 3

for line in disassemble(rom_bytes):
    print(line)
```

- `disassemble_op(code, pc)` returns the listing line and the instruction
  length (1, 2 or 3). It raises `IndexError` if `pc` is outside `code` and
  `ValueError` if the instruction's operand bytes run past the end.
- `disassemble(code)` yields one line per instruction from address 0 to the end.

## Running the emulator

```
invaders8080-run [DIRECTORY] [--debug]
```

The four ROM parts `invaders.h`, `invaders.g`, `invaders.f` and `invaders.e`
are read from `DIRECTORY` (the current directory by default) and loaded at
`0x0000`, `0x0800`, `0x1000` and `0x1800`. Execution starts at address 0 and
continues until an opcode the emulator does not implement is reached; the
command then prints `Error: Unimplemented instruction` and the opcode, and
exits with status 1. A missing ROM file gives `error: Couldn't open file
<path>` and status 1.

With `--debug`, each instruction is printed as a disassembly line followed by
the registers, stack pointer, program counter and flags after it runs.

From Python, in `invaders8080.emulator`:

```python
from invaders8080.emulator import State8080, UnimplementedInstruction

state = State8080()
state.load_file("invaders.h", 0)
try:
    while True:
        state.emulate_op()
except UnimplementedInstruction as err:
    print(err.opcode, err.address)
```

- `State8080` holds the registers `a`, `b`, `c`, `d`, `e`, `h`, `l`, `sp`,
  `pc`, 64 KiB of `memory`, the flags in `cc` (a `ConditionCodes` with `z`,
  `s`, `p`, `cy` and `ac`), `int_enable` and a `debug` switch.
- `emulate_op()` executes one instruction. For an unhandled opcode it raises
  `UnimplementedInstruction`, which carries `opcode` and `address`, and leaves
  `pc` on that opcode.
- `load_file(filename, offset)` copies a file into memory; it raises
  `ValueError` if the data would not fit.
- `flag_z`, `flag_s` and `flag_p` compute the zero, sign and parity flags of
  a value.

Instruction writes to memory take effect only in the RAM window
`0x2000`–`0x4000` (inclusive) and are ignored elsewhere; `PUSH PSW` writes its
two bytes without that check.

## What it does not do

The emulator implements only the handful of instructions needed by the
game's start-up code, so a run of the full ROM stops early. There is no
display, sound, player input, I/O port handling or interrupt delivery:
`OUT` skips its operand and `EI` only sets `int_enable`. It is a CPU core to
build on, not a playable arcade machine.