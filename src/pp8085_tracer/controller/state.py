# pp8085_tracer/controller/state.py
"""
実行コントローラの状態定義。

RunStateと、UIへ公開される不変のControllerSnapshotを定義します。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from pp8085_tracer.common.types import IoPortMap
from pp8085_tracer.transport.bus import BusAccess
from pp8085_tracer.engine.adapter import RegisterSnapshot


# @intent:responsibility コントローラの実行モードを定義します。
class RunState(Enum):
    IDLE = "IDLE"
    STEPPING = "STEPPING"  # 手動step()の実行中のみ。公開されるSnapshotには現れない
    RUNNING = "RUNNING"
    HALTED = "HALTED"


# @intent:responsibility 失敗したコンパイルのメッセージ。ユーザーが閉じるまで保持されます。
@dataclass(frozen=True)
class CompileError:
    message: str
    line: Optional[int] = None

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"Line {self.line}: {self.message}"


@dataclass(frozen=True)
class ControllerSnapshot:
    """
    コマンド実行ごとに公開される、コントローラとエンジンの観測可能な状態。
    UIはこのオブジェクトのみから描画を行います。
    """
    run_state: RunState
    registers: RegisterSnapshot
    io_ports: IoPortMap = field(default_factory=dict)
    compile_error: Optional[CompileError] = None
    interval_ms: int = 500
    last_instruction: str = ""  # 例: "NEXT: DCR A"
    instructions_executed: int = 0
    cycle_count: int = 0  # リセット以降の累計Tステート
    bus_activity: Tuple[BusAccess, ...] = ()  # 直前の命令のバスアクセス
    can_step: bool = False
    can_run: bool = False
    can_pause: bool = False
