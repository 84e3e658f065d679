import pytest

from invaders8080.disassembler import disassemble, disassemble_op, main


def _padded(opcode):
    return bytes([opcode, 0x34, 0x12])


def test_nop_at_start():
    assert disassemble_op(bytes([0x00]), 0) == ("0000 NOP", 1)


def test_hlt():
    line, size = disassemble_op(bytes([0x76]), 0)
    assert line.endswith("HLT")
    assert size == 1


def test_three_byte_operand_is_little_endian():
    line, size = disassemble_op(bytes([0xC3, 0x34, 0x12]), 0)
    assert size == 3
    assert line.endswith("JMP\t#$1234")


def test_two_byte_operand():
    line, size = disassemble_op(bytes([0x3E, 0xAB]), 0)
    assert size == 2
    assert line.endswith("MVI\tA,#$ab")


def test_address_prefix_uses_pc():
    code = bytes([0x00] * 0x20 + [0xC9])
    line, size = disassemble_op(code, 0x20)
    assert line.startswith("0020 ")
    assert line.endswith("RET")
    assert size == 1


def test_opcode_0x77_listing_quirk():
    line, _ = disassemble_op(bytes([0x77]), 0)
    assert line.endswith("MOV\tH,A")


@pytest.mark.parametrize("opcode", range(256))
def test_every_opcode_decodes_with_valid_size(opcode):
    line, size = disassemble_op(_padded(opcode), 0)
    assert size in (1, 2, 3)
    assert line.startswith("0000 ")
    assert len(line) > len("0000 ")


@pytest.mark.parametrize("opcode", range(256))
def test_size_matches_operand_marker(opcode):
    line, size = disassemble_op(_padded(opcode), 0)
    has_operand = "#$" in line
    assert has_operand == (size > 1)


@pytest.mark.parametrize("opcode", [0x08, 0x10, 0x18, 0x20, 0x28, 0x30, 0x38, 0xCB, 0xD9, 0xDD, 0xED, 0xFD])
def test_undocumented_opcodes_are_nop(opcode):
    assert disassemble_op(bytes([opcode]), 0)[0].endswith("NOP")


def test_truncated_instruction_raises():
    with pytest.raises(ValueError):
        disassemble_op(bytes([0xCD, 0x00]), 0)


def test_pc_out_of_range_raises():
    with pytest.raises(IndexError):
        disassemble_op(bytes([0x00]), 1)


def test_disassemble_walks_instructions():
    code = bytes([0x00, 0x3E, 0x05, 0xC3, 0x00, 0x00, 0xC9])
    lines = list(disassemble(code))
    assert len(lines) == 4
    assert [line[:4] for line in lines] == ["0000", "0001", "0003", "0006"]


def test_disassemble_empty():
    assert list(disassemble(b"")) == []


def test_disassemble_sizes_cover_buffer():
    code = bytes(range(256)) + bytes([0, 0])
    total = 0
    pc = 0
    for line in disassemble(code):
        assert int(line[:4], 16) == pc
        _, size = disassemble_op(code, pc)
        pc += size
        total += size
    assert total == len(code)


def test_main_prints_listing(tmp_path, capsys):
    rom = tmp_path / "rom.bin"
    rom.write_bytes(bytes([0x00, 0xC3, 0x34, 0x12]))
    assert main([str(rom)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["0000 NOP", "0001 JMP\t#$1234"]


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "absent.bin"
    assert main([str(missing)]) == 1
    assert "Couldn't open file" in capsys.readouterr().out