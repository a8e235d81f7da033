# pp8085_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

命令サイクル（フェッチ→デコード→PC更新→実行）の順序だけを固定し、
各段の中身はアーキテクチャ側のサブクラスに任せます。
1サイクルごとに、その間のバスアクセスと累計Tステートを添えたSnapshotを返します。
"""
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from pp8085_tracer.transport.bus import Bus
from pp8085_tracer.core.snapshot import Snapshot, Operation, Metadata
from pp8085_tracer.core.state import CpuState
from pp8085_tracer.common.types import SymbolMap, RegisterLayoutInfo


# @intent:responsibility 命令サイクルの骨格、累計Tステート、ラベル付き命令表示を管理します。
class AbstractCpu(ABC):
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._t_states = 0
        self._labels: Dict[int, str] = {}

    # @intent:responsibility アドレスからラベル名への逆引きを作り直します。
    def set_symbol_map(self, symbol_map: SymbolMap) -> None:
        self._labels = {address: name for name, address in symbol_map.items()}

    def get_state(self) -> CpuState:
        return self._state

    def is_halted(self) -> bool:
        return self._state.halted

    # @intent:post-condition レジスタ、HALT、累計Tステートのみを初期化します。メモリとI/Oポートはそのままです。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._t_states = 0

    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        pass

    # @intent:pre-condition PCは進めないこと。PCの更新は_update_pcが命令長に基づいて行います。
    @abstractmethod
    def _fetch(self) -> int:
        pass

    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        pass

    @abstractmethod
    def _execute(self, operation: Operation) -> None:
        pass

    # @intent:responsibility 1命令を実行し、実行後の状態を記録したSnapshotを返します。
    def step(self) -> Snapshot:
        """
        手順は常に次の順序です。
        前サイクルのバスログ破棄 → HALTフック → フェッチ → デコード → PC更新 → 実行 → Snapshot生成。
        HALTフックがSnapshotを返した場合、以降の段は実行されません。
        """
        self._bus.get_and_clear_activity_log()
        start_pc = self._state.pc

        suspended = self._handle_halt(start_pc)
        if suspended is not None:
            return suspended

        operation = self._decode(self._fetch())
        self._update_pc(operation)
        self._execute(operation)
        return self._record(start_pc, operation)

    # @intent:return HALT中に返すSnapshot。HALTしていなければNone。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        return None

    def _update_pc(self, operation: Operation) -> None:
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    def describe(self, address: int, operation: Operation) -> str:
        label = self._labels.get(address)
        return f"{label}: {operation.text}" if label else operation.text

    # @intent:post-condition Snapshot.stateはコピーであり、以降の実行で変化しません。
    def _record(self, start_pc: int, operation: Operation) -> Snapshot:
        accesses = self._bus.get_and_clear_activity_log()
        self._t_states += operation.cycle_count
        return Snapshot(
            state=replace(self._state),
            operation=operation,
            metadata=Metadata(cycle_count=self._t_states, symbol_info=self.describe(start_pc, operation)),
            bus_activity=accesses,
        )

    # @intent:responsibility レジスタビューのグループ構成を返します。
    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        pass

    # @intent:return (アドレス, 16進バイト列, 命令文字列) のリスト。バスログは残しません。
    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        pass
