# pp8085_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1命令の実行結果を記録した不変のデータ構造を定義します。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from pp8085_tracer.core.state import CpuState
from pp8085_tracer.transport.bus import BusAccess


# @intent:responsibility 実行された命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    実行された命令の詳細（HEX、ニーモニック、オペランド）を記録するデータクラス。
    """
    opcode_hex: str # 例: "C3"
    mnemonic: str # 例: "JMP"
    operands: List[str] = field(default_factory=list) # 例: ["0005H"]
    operand_bytes: List[int] = field(default_factory=list) # 生のオペランドバイト
    cycle_count: int = 0 # 命令実行に必要なTステート数
    length: int = 1 # 命令のバイト長

    # @intent:responsibility 表示用の命令文字列を返します。
    @property
    def text(self) -> str:
        if self.operands:
            return f"{self.mnemonic} {','.join(self.operands)}"
        return self.mnemonic

@dataclass(frozen=True)
class Metadata:
    """
    実行に関するメタデータ（累計サイクル数、シンボル情報など）を記録するデータクラス。
    """
    cycle_count: int
    symbol_info: Optional[str] = None # 例: "NEXT: DCR A"

# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    1命令実行直後のCPU状態とバスアクティビティを記録した不変のデータ構造。
    stateは実行後の状態のコピーです。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
