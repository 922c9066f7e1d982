"""
Command-Line Tool Tests
=======================

Tests for n8asm, n8disasm and n8run, driven through click's CliRunner.

Copyright (c) 2025 The Nano8 SDK Contributors
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from nano8.cli.n8asm import main as n8asm
from nano8.cli.n8disasm import main as n8disasm, parse_address
from nano8.cli.n8run import format_display, format_registers, main as n8run
from nano8.emulator import SNAPSHOT_MAGIC


ADD_AND_STORE = """
        CLR AC
        ADD 5
        STA A
        HLT
"""

HELLO = """
        CLR AC
        PRNT 'H'
        ADD 1
        PRNT 'I'
        HLT
"""

ADD_AND_STORE_BIN = bytes([0x01, 0x91, 0x05, 0x28, 0x70])


@pytest.fixture
def runner():
    return CliRunner()


# =============================================================================
# n8asm
# =============================================================================

class TestAssemblerCLI:

    def test_default_output_name(self, runner):
        with runner.isolated_filesystem():
            Path("add.prog").write_text(ADD_AND_STORE)
            result = runner.invoke(n8asm, ["add.prog"])

            assert result.exit_code == 0, f"Assembly failed: {result.output}"
            assert "Assembled Program" in result.output
            assert Path("add.bin").read_bytes() == ADD_AND_STORE_BIN

    def test_all_outputs(self, runner):
        with runner.isolated_filesystem():
            Path("add.prog").write_text("start: " + ADD_AND_STORE.strip())
            result = runner.invoke(
                n8asm, ["add.prog", "-o", "out.bin", "-l", "out.lst", "-s", "out.sym"]
            )

            assert result.exit_code == 0
            assert Path("out.bin").read_bytes() == ADD_AND_STORE_BIN
            assert "Nano8 Assembler Listing" in Path("out.lst").read_text()
            assert "START $000" in Path("out.sym").read_text()
            assert not Path("add.bin").exists()

    def test_verbose_summary(self, runner):
        with runner.isolated_filesystem():
            Path("wide.prog").write_text("ADD 300\nHLT\n")
            result = runner.invoke(n8asm, ["-v", "wide.prog"])

            assert result.exit_code == 0
            assert "Wrote 3 bytes to wide.bin" in result.output
            assert "Defined 0 symbols" in result.output
            assert "1 warning(s)" in result.output
            assert Path("wide.bin").read_bytes() == bytes([0x91, 44, 0x70])

    def test_assembly_error(self, runner):
        with runner.isolated_filesystem():
            Path("bad.prog").write_text("HLT\nSTA 5\n")
            result = runner.invoke(n8asm, ["bad.prog"])

            assert result.exit_code == 1
            assert "bad.prog:2:5: error:" in result.output
            assert "STA supports: A, B, C, LED" in result.output
            assert not Path("bad.bin").exists()

    def test_no_code(self, runner):
        with runner.isolated_filesystem():
            Path("empty.prog").write_text("; only a comment\n")
            result = runner.invoke(n8asm, ["empty.prog"])

            assert result.exit_code == 1
            assert "No code to assemble" in result.output

    def test_missing_input(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(n8asm, ["nope.prog"])
            assert result.exit_code == 2

    def test_version(self, runner):
        result = runner.invoke(n8asm, ["--version"])
        assert result.exit_code == 0
        assert "n8asm" in result.output
        assert "1.0.0" in result.output


# =============================================================================
# n8disasm
# =============================================================================

class TestDisassemblerCLI:

    @pytest.mark.parametrize("text,value", [
        ("16", 16), ("0x10", 16), ("0X1f", 31), ("$7FF", 2047),
    ])
    def test_parse_address(self, text, value):
        assert parse_address(text) == value

    def test_parse_address_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_address("ten")

    def test_listing(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8disasm, ["add.bin"])

            assert result.exit_code == 0
            lines = result.output.splitlines()
            assert lines[:4] == [
                "; Disassembly of add.bin",
                "; Size: 5 bytes",
                "; Base address: $000",
                "",
            ]
            assert lines[4:] == [
                "$000: 01     CLR AC",
                "$001: 91 05  ADD $05",
                "$003: 28     STA A",
                "$004: 70     HLT",
            ]

    def test_no_bytes(self, runner):
        with runner.isolated_filesystem():
            Path("jump.bin").write_bytes(bytes([0x01, 0xD1, 0x00]))
            result = runner.invoke(n8disasm, ["jump.bin", "--no-bytes"])

            assert result.exit_code == 0
            assert "$000: CLR AC\n" in result.output
            assert "$001: JMPZ $00  ; -> $000" in result.output

    def test_hex_dump(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8disasm, ["add.bin", "--hex"])

            assert result.exit_code == 0
            assert "; Hex dump:" in result.output
            assert "; $000: 01 91 05 28 70" in result.output

    def test_base_address_and_count(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8disasm, ["add.bin", "-a", "0x100", "-c", "2"])

            assert result.exit_code == 0
            assert "; Base address: $100" in result.output
            assert "$100: 01" in result.output
            assert "$101: 91 05" in result.output
            assert "STA A" not in result.output

    def test_output_file(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8disasm, ["add.bin", "-o", "add.lst"])

            assert result.exit_code == 0
            assert result.output == ""
            assert "$004: 70     HLT" in Path("add.lst").read_text()

    def test_output_reassembles(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            runner.invoke(n8disasm, ["add.bin", "--no-bytes", "-o", "add.lst"])
            source = "\n".join(
                line.split(": ", 1)[1]
                for line in Path("add.lst").read_text().splitlines()
                if line.startswith("$")
            )
            Path("again.prog").write_text(source)
            result = runner.invoke(n8asm, ["again.prog"])

            assert result.exit_code == 0
            assert Path("again.bin").read_bytes() == ADD_AND_STORE_BIN

    @pytest.mark.parametrize("address", ["zz", "2048", "-1"])
    def test_bad_address(self, runner, address):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8disasm, ["add.bin", f"--address={address}"])
            assert result.exit_code == 2

    def test_empty_file(self, runner):
        with runner.isolated_filesystem():
            Path("empty.bin").write_bytes(b"")
            result = runner.invoke(n8disasm, ["empty.bin"])

            assert result.exit_code == 1
            assert "is empty" in result.output


# =============================================================================
# n8run
# =============================================================================

class TestRunHelpers:

    def test_format_display(self):
        assert format_display(["ab", "cd"]) == ["+--+", "|ab|", "|cd|", "+--+"]

    def test_format_registers(self):
        registers = {'ac': 1, 'a': 0x20, 'b': 0, 'c': 0xFF, 'pc': 0x123, 'phase': 'FETCH'}
        assert format_registers(registers) == "AC=$01 A=$20 B=$00 C=$FF PC=$123 phase=FETCH"


class TestRunCLI:

    def test_run_binary(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8run, ["add.bin"])

            assert result.exit_code == 0, result.output
            assert "Registers: AC=$05 A=$05 B=$00 C=$00 PC=$005 phase=HALT" in result.output
            assert "Stopped: Halted after 13 ticks" in result.output

    def test_run_source_shows_display(self, runner):
        with runner.isolated_filesystem():
            Path("hello.prog").write_text(HELLO)
            result = runner.invoke(n8run, ["hello.prog"])

            assert result.exit_code == 0
            lines = result.output.splitlines()
            assert lines[0] == "+" + "-" * 16 + "+"
            assert lines[1] == "|HI" + " " * 14 + "|"
            assert lines[5] == lines[0]

    def test_leds(self, runner):
        with runner.isolated_filesystem():
            Path("leds.prog").write_text("ADD 3\nSTA LED\nHLT\n")
            result = runner.invoke(n8run, ["leds.prog"])
            assert "LEDs: **...." in result.output

    @pytest.mark.parametrize("flags,expected", [([], "A=$01"), (["--button"], "A=$00")])
    def test_button(self, runner, flags, expected):
        with runner.isolated_filesystem():
            Path("btn.prog").write_text("ADD 1\nCLR BTN\nSTA A\nHLT\n")
            result = runner.invoke(n8run, ["btn.prog", *flags])
            assert expected in result.output

    def test_breakpoint(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8run, ["add.bin", "--break", "$003"])

            assert result.exit_code == 0
            assert "Stopped: Breakpoint at $003" in result.output
            assert "PC=$003" in result.output

    def test_bad_breakpoint(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8run, ["add.bin", "-b", "here"])

            assert result.exit_code == 2
            assert "invalid breakpoint address" in result.output

    def test_ticks_per_ms_from_environment(self, runner):
        with runner.isolated_filesystem():
            Path("wait.prog").write_text("WAIT 2\nHLT\n")
            result = runner.invoke(n8run, ["wait.prog"], env={"NANO8_TICKS_PER_MS": "10"})
            assert "Stopped: Halted after 27 ticks" in result.output

    def test_max_ticks(self, runner):
        with runner.isolated_filesystem():
            Path("wait.prog").write_text("WAIT 2\nHLT\n")
            result = runner.invoke(n8run, ["wait.prog", "--ticks-per-ms", "10", "--max-ticks", "10"])

            assert result.exit_code == 0
            assert "Stopped: Maximum ticks reached" in result.output

    def test_latency(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8run, ["add.bin", "--latency", "1"])
            assert "Stopped: Halted after 18 ticks" in result.output

    def test_trace(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8run, ["add.bin", "--trace"])

            assert "$000  01  CLR AC" in result.output
            assert "$001  91  ADD <constant> operand=$05" in result.output
            assert "$004  70  HLT" in result.output

    def test_snapshot(self, runner):
        with runner.isolated_filesystem():
            Path("add.bin").write_bytes(ADD_AND_STORE_BIN)
            result = runner.invoke(n8run, ["add.bin", "--snapshot", "state.n8s"])

            assert result.exit_code == 0
            assert Path("state.n8s").read_bytes().startswith(SNAPSHOT_MAGIC)

    def test_oversized_image(self, runner):
        with runner.isolated_filesystem():
            Path("big.bin").write_bytes(bytes(4096))
            result = runner.invoke(n8run, ["big.bin"])

            assert result.exit_code == 1
            assert "Run error:" in result.output

    def test_source_with_errors(self, runner):
        with runner.isolated_filesystem():
            Path("bad.prog").write_text("JMPZ nowhere\n")
            result = runner.invoke(n8run, ["bad.prog"])

            assert result.exit_code == 1
            assert "undefined symbol 'nowhere'" in result.output
