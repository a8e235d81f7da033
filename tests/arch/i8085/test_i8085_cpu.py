# tests/arch/i8085/test_i8085_cpu.py
"""
I8085Cpuのstep、HALT処理、UI向けAPI、逆アセンブラの単体テスト。
"""
import pytest

from pp8085_tracer.transport.bus import Bus, RAM, BusAccessType
from pp8085_tracer.arch.i8085.cpu import I8085Cpu

# 3E 0F     MVI A, 0FH
# 3D        NEXT: DCR A
# C2 02 00  JNZ NEXT
# 76        HLT
COUNTDOWN = [0x3E, 0x0F, 0x3D, 0xC2, 0x02, 0x00, 0x76]

@pytest.fixture
def cpu_bus():
    bus = Bus()
    bus.register_device(0x0000, 0x1FFF, RAM(0x2000))
    cpu = I8085Cpu(bus)
    return cpu, bus

def _load(bus, program, start=0x0000):
    for i, byte in enumerate(program):
        bus.write(start + i, byte)
    bus.get_and_clear_activity_log()

def test_initial_state_is_all_zero(cpu_bus):
    cpu, _ = cpu_bus
    state = cpu.get_state()
    assert (state.pc, state.sp, state.a, state.f) == (0, 0, 0, 0)
    assert not cpu.is_halted()

# @intent:test_case_step フェッチしたオペコードがIRに保持され、Snapshotにバスアクセスが記録されることを検証します。
def test_step_sets_ir_and_records_bus_activity(cpu_bus):
    cpu, bus = cpu_bus
    _load(bus, COUNTDOWN)

    snapshot = cpu.step()

    assert cpu.get_state().ir == 0x3E
    assert cpu.get_state().a == 0x0F
    assert cpu.get_state().pc == 0x0002
    assert snapshot.operation.text == "MVI A,0FH"
    assert [a.access_type for a in snapshot.bus_activity] == [BusAccessType.READ, BusAccessType.READ]
    assert snapshot.metadata.cycle_count == 7

def test_symbol_info_shows_label(cpu_bus):
    cpu, bus = cpu_bus
    _load(bus, COUNTDOWN)
    cpu.set_symbol_map({"NEXT": 0x0002})
    cpu.step()
    snapshot = cpu.step()
    assert snapshot.metadata.symbol_info == "NEXT: DCR A"

# @intent:test_case_countdown カウントダウンプログラムが32ステップ目でHALTすることを検証します。
def test_countdown_halts_after_32_steps(cpu_bus):
    cpu, bus = cpu_bus
    _load(bus, COUNTDOWN)

    for _ in range(31):
        cpu.step()
        assert not cpu.is_halted()
    assert cpu.get_state().a == 0x00
    assert cpu.get_state().flag_z

    cpu.step()
    assert cpu.is_halted()
    assert cpu.get_state().pc == 0x0007

def test_step_while_halted_does_nothing(cpu_bus):
    cpu, bus = cpu_bus
    _load(bus, [0x76, 0x3C])
    cycles = cpu.step().metadata.cycle_count

    snapshot = cpu.step()

    assert snapshot.operation.mnemonic == "HLT (suspended)"
    assert snapshot.operation.length == 0
    assert snapshot.bus_activity == []
    assert cpu.get_state().pc == 0x0001
    assert cpu.get_state().a == 0x00
    assert snapshot.metadata.cycle_count == cycles

def test_reset_clears_halt_but_keeps_memory_and_ports(cpu_bus):
    cpu, bus = cpu_bus
    _load(bus, [0x76])
    bus.io_ports.add(0x10)
    bus.io_ports.write(0x10, 0x99)
    cpu.step()

    cpu.reset()

    assert not cpu.is_halted()
    assert cpu.get_state().pc == 0x0000
    assert bus.peek(0x0000) == 0x76
    assert bus.io_ports.read(0x10) == 0x99

def test_executing_past_memory_raises_index_error(cpu_bus):
    cpu, bus = cpu_bus
    _load(bus, [0xC3, 0xFF, 0xFF])  # JMP FFFFH
    cpu.step()
    with pytest.raises(IndexError):
        cpu.step()

def test_register_pairs_and_flags(cpu_bus):
    cpu, _ = cpu_bus
    state = cpu.get_state()
    state.bc = 0x1234
    state.a = 0x80
    state.flag_s = True
    state.flag_cy = True

    assert (state.b, state.c) == (0x12, 0x34)
    assert state.psw == 0x8081
    assert (state.flag_z, state.flag_ac, state.flag_p) == (False, False, False)

def test_register_layout_groups(cpu_bus):
    cpu, _ = cpu_bus
    layout = cpu.get_register_layout()
    assert [group.group_name for group in layout] == ["Accumulator & Flags", "General Purpose", "Pointers"]
    widths = {reg.name: reg.width for group in layout for reg in group.registers}
    assert widths["SP"] == 16
    assert widths["B"] == 8

class TestDisassembler:
    def test_disassemble_countdown(self, cpu_bus):
        cpu, bus = cpu_bus
        _load(bus, COUNTDOWN)

        lines = cpu.disassemble(0x0000, len(COUNTDOWN))

        assert lines == [
            (0x0000, "3E 0F", "MVI A,0FH"),
            (0x0002, "3D", "DCR A"),
            (0x0003, "C2 02 00", "JNZ 0002H"),
            (0x0006, "76", "HLT"),
        ]

    # @intent:test_case_no_side_effect 逆アセンブルはバスログを残さないことを検証します。
    def test_disassemble_leaves_no_bus_activity(self, cpu_bus):
        cpu, bus = cpu_bus
        _load(bus, COUNTDOWN)
        cpu.disassemble(0x0000, 7)
        assert bus.get_and_clear_activity_log() == []

    def test_disassemble_beyond_memory(self, cpu_bus):
        cpu, _ = cpu_bus
        lines = cpu.disassemble(0x1FFF, 2)
        assert lines[0] == (0x1FFF, "00", "NOP")
        assert lines[1] == (0x2000, "??", "ERR")
