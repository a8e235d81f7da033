# pp8085_tracer/arch/i8085/cpu.py
"""
8085 CPUエミュレーションの中心モジュール。

このモジュールは8085 CPUの具体的な実装を提供し、
AbstractCpuインターフェースを実装します。
"""
from dataclasses import replace
from typing import List, Optional, Tuple

from pp8085_tracer.core.cpu import AbstractCpu
from pp8085_tracer.core.snapshot import Operation, Metadata, Snapshot
from pp8085_tracer.arch.i8085.state import I8085CpuState
from pp8085_tracer.arch.i8085.instructions import decode_opcode, execute_instruction
from pp8085_tracer.arch.i8085 import disassembler
from pp8085_tracer.transport.bus import Bus
from pp8085_tracer.common.types import RegisterLayoutInfo, RegisterInfo

# @intent:responsibility 8085 CPUの具体的なエミュレーションロジックを提供します。
class I8085Cpu(AbstractCpu):
    """
    Intel 8085 CPUをエミュレートするクラス。
    """
    def __init__(self, bus: Bus):
        super().__init__(bus)

    # @intent:responsibility 8085の初期状態を生成します。全レジスタ0、PC=0、SP=0です。
    def _create_initial_state(self) -> I8085CpuState:
        return I8085CpuState()

    # @intent:responsibility 現在のPCからオペコードをフェッチし、IRに保持します。
    def _fetch(self) -> int:
        opcode = self._bus.read(self._state.pc)
        self._state.ir = opcode
        return opcode

    def _decode(self, opcode: int) -> Operation:
        return decode_opcode(opcode, self._bus, self._state.pc)

    def _execute(self, operation: Operation) -> None:
        execute_instruction(operation, self._state, self._bus)

    # @intent:responsibility HALT中は命令をフェッチせず、PCを維持したまま空のSnapshotを返します。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        if not self._state.halted:
            return None
        operation = Operation(opcode_hex="76", mnemonic="HLT (suspended)", cycle_count=0, length=0)
        return Snapshot(
            state=replace(self._state),
            operation=operation,
            metadata=Metadata(cycle_count=self._t_states, symbol_info=f"PC: {current_pc:#06x} -> HLT (suspended)"),
            bus_activity=[],
        )

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("Accumulator & Flags", [
                RegisterInfo("A", 8), RegisterInfo("F", 8)
            ]),
            RegisterLayoutInfo("General Purpose", [
                RegisterInfo("B", 8), RegisterInfo("C", 8), RegisterInfo("D", 8),
                RegisterInfo("E", 8), RegisterInfo("H", 8), RegisterInfo("L", 8)
            ]),
            RegisterLayoutInfo("Pointers", [
                RegisterInfo("SP", 16), RegisterInfo("PC", 16), RegisterInfo("IR", 8)
            ]),
        ]

    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return disassembler.disassemble(self._bus, start_addr, length)
