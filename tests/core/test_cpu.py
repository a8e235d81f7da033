# tests/core/test_cpu.py
"""
pp8085_tracer.core.cpuモジュールの単体テスト。
"""
import pytest
from typing import List, Optional, Tuple

from pp8085_tracer.core.state import CpuState
from pp8085_tracer.core.cpu import AbstractCpu
from pp8085_tracer.core.snapshot import Snapshot, Operation, Metadata
from pp8085_tracer.transport.bus import Bus, RAM, BusAccessType
from pp8085_tracer.common.types import RegisterLayoutInfo, RegisterInfo

# @intent:test_suite 抽象CPUのテンプレートメソッド（step）と状態管理を検証します。

class DummyCpu(AbstractCpu):
    """
    0x00をNOP、0x76をHALT、それ以外をUNKNOWNとして扱い、実行時に0x20番地へ0xFFを書き込むテスト用CPU。
    """
    def __init__(self, bus: Bus, initial_pc: int = 0x0000, initial_sp: int = 0x0000):
        self._initial_pc = initial_pc
        self._initial_sp = initial_sp
        super().__init__(bus)

    def _create_initial_state(self) -> CpuState:
        return CpuState(pc=self._initial_pc, sp=self._initial_sp)

    def _fetch(self) -> int:
        return self._bus.read(self._state.pc)

    def _decode(self, opcode: int) -> Operation:
        mnemonic = {0x00: "NOP", 0x76: "HALT"}.get(opcode, "UNKNOWN")
        return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, cycle_count=4)

    def _execute(self, operation: Operation) -> None:
        if operation.mnemonic == "HALT":
            self._state.halted = True
        else:
            self._bus.write(0x0020, 0xFF)

    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        if not self._state.halted:
            return None
        return Snapshot(state=CpuState(pc=current_pc, halted=True),
                        operation=Operation(opcode_hex="76", mnemonic="HALT", length=0),
                        metadata=Metadata(cycle_count=self._t_states))

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [RegisterLayoutInfo("Test Group", [RegisterInfo("PC", 16), RegisterInfo("SP", 16)])]

    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return [(start_addr + i, "00", "NOP") for i in range(length)]

class TestCpuState:
    def test_cpu_state_init_default(self):
        state = CpuState()
        assert state.pc == 0x0000
        assert state.sp == 0x0000
        assert state.halted is False

    def test_cpu_state_mutability(self):
        state = CpuState()
        state.pc = 0x1000
        state.sp = 0x2000
        assert (state.pc, state.sp) == (0x1000, 0x2000)

class TestAbstractCpu:
    @pytest.fixture
    def setup_cpu(self):
        bus = Bus()
        ram = RAM(256)
        bus.register_device(0x0000, 0x00FF, ram)
        cpu = DummyCpu(bus, initial_pc=0x0010, initial_sp=0x00F0)
        return cpu, bus, ram

    def test_abstract_cpu_init(self, setup_cpu):
        cpu, _, _ = setup_cpu
        state = cpu.get_state()
        assert state.pc == 0x0010
        assert state.sp == 0x00F0
        assert not cpu.is_halted()

    # @intent:test_case_reset resetは状態とサイクル数を初期化し、メモリには触れないことを検証します。
    def test_abstract_cpu_reset(self, setup_cpu):
        cpu, bus, _ = setup_cpu
        bus.write(0x0010, 0x00)
        cpu.step()
        cpu.get_state().sp = 0xBBBB
        bus.write(0x0050, 0x42)

        cpu.reset()

        assert cpu.get_state().pc == 0x0010
        assert cpu.get_state().sp == 0x00F0
        assert bus.peek(0x0050) == 0x42
        assert cpu.step().metadata.cycle_count == 4

    # @intent:test_case_step stepがフェッチ→デコード→PC更新→実行→Snapshot生成の順に処理することを検証します。
    def test_abstract_cpu_step(self, setup_cpu):
        cpu, bus, _ = setup_cpu
        initial_pc = cpu.get_state().pc
        bus.write(initial_pc, 0x12)
        bus.write(0x0030, 0x00)  # 前サイクルの残存ログ

        snapshot = cpu.step()

        assert cpu.get_state().pc == initial_pc + 1
        assert isinstance(snapshot, Snapshot)
        assert snapshot.state == cpu.get_state()
        assert snapshot.operation.mnemonic == "UNKNOWN"
        assert snapshot.metadata.cycle_count == 4
        assert snapshot.metadata.symbol_info == "UNKNOWN"
        assert [(a.address, a.access_type) for a in snapshot.bus_activity] == [
            (initial_pc, BusAccessType.READ),
            (0x0020, BusAccessType.WRITE),
        ]

    # @intent:test_case_snapshot_copy Snapshotのstateは後続の実行で変化しないことを検証します。
    def test_snapshot_state_is_a_copy(self, setup_cpu):
        cpu, _, _ = setup_cpu
        first = cpu.step()
        cpu.step()
        assert first.state.pc == 0x0011
        assert cpu.get_state().pc == 0x0012

    def test_symbol_info_uses_labels(self, setup_cpu):
        cpu, _, _ = setup_cpu
        cpu.set_symbol_map({"START": 0x0010})
        snapshot = cpu.step()
        assert snapshot.metadata.symbol_info == "START: NOP"
        assert cpu.describe(0x0011, snapshot.operation) == "NOP"

    def test_cycle_count_accumulates_t_states(self, setup_cpu):
        cpu, _, _ = setup_cpu
        cpu.step()
        snapshot = cpu.step()
        assert snapshot.metadata.cycle_count == 8

    def test_halt_hook_short_circuits_step(self, setup_cpu):
        cpu, bus, _ = setup_cpu
        bus.write(0x0010, 0x76)
        cpu.step()
        assert cpu.is_halted()
        pc_after_halt = cpu.get_state().pc

        snapshot = cpu.step()
        assert snapshot.operation.length == 0
        assert cpu.get_state().pc == pc_after_halt
        assert bus.peek(0x0020) == 0x00

    def test_ui_api_integration(self, setup_cpu):
        cpu, _, _ = setup_cpu
        layout = cpu.get_register_layout()
        assert layout[0].group_name == "Test Group"
        assert cpu.disassemble(0x0000, 2)[0] == (0x0000, "00", "NOP")
