# pp8085_tracer/controller/controller.py
"""
実行コントローラモジュール。

エンジンの実行モード（IDLE / RUNNING / HALTED）、自動実行タイマー、
コンパイルとロードの手順、I/Oポート操作を一元的に管理します。
UIには不変のControllerSnapshotのみを公開し、ウィジェットには一切触れません。
"""
from typing import Callable, List, Optional, Tuple
import logging

from pp8085_tracer.common.errors import ParseError, EngineFault
from pp8085_tracer.engine.adapter import EngineAdapter, ProgramImage
from pp8085_tracer.transport.bus import BusAccess
from .cadence import CadenceConfig
from .scheduler import Scheduler, TimerHandle
from .state import RunState, CompileError, ControllerSnapshot

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[ControllerSnapshot], None]


# @intent:responsibility ユーザーの操作をエンジン操作に変換し、実行モードとタイマーの整合性を保証します。
# @intent:rationale RUNNINGであることと有効なタイマーハンドルが存在することは常に同値です。
#                  ハンドルは高々1本であり、二重のrun()は拒否されます。
class ExecutionController:
    """
    8085エンジンの実行を制御するクラス。
    全てのコマンドは同期的に実行され、変更後にControllerSnapshotが購読者に通知されます。
    """
    def __init__(self, adapter: EngineAdapter, scheduler: Scheduler, cadence: Optional[CadenceConfig] = None):
        self._adapter = adapter
        self._scheduler = scheduler
        self._cadence = cadence or CadenceConfig()
        self._interval_ms = self._cadence.clamp(self._cadence.initial_interval_ms)
        self._run_state = RunState.IDLE
        self._timer: Optional[TimerHandle] = None
        self._compile_error: Optional[CompileError] = None
        self._program: Optional[ProgramImage] = None
        self._last_instruction = ""
        self._instructions_executed = 0
        self._cycle_count = 0
        self._bus_activity: Tuple[BusAccess, ...] = ()
        self._listeners: List[SnapshotListener] = []

    @property
    def run_state(self) -> RunState:
        return self._run_state

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def cadence(self) -> CadenceConfig:
        return self._cadence

    @property
    def compile_error(self) -> Optional[CompileError]:
        return self._compile_error

    @property
    def program(self) -> Optional[ProgramImage]:
        return self._program

    @property
    def adapter(self) -> EngineAdapter:
        return self._adapter

    # --- Affordances ---

    def can_step(self) -> bool:
        return self._run_state not in (RunState.RUNNING, RunState.HALTED) and not self._adapter.is_halted()

    def can_run(self) -> bool:
        return self._run_state == RunState.IDLE and not self._timer_active() and not self._adapter.is_halted()

    def can_pause(self) -> bool:
        return self._run_state == RunState.RUNNING

    # --- Observation ---

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            run_state=self._run_state,
            registers=self._adapter.registers(),
            io_ports=self._adapter.get_io_ports(),
            compile_error=self._compile_error,
            interval_ms=self._interval_ms,
            last_instruction=self._last_instruction,
            instructions_executed=self._instructions_executed,
            cycle_count=self._cycle_count,
            bus_activity=self._bus_activity,
            can_step=self.can_step(),
            can_run=self.can_run(),
            can_pause=self.can_pause(),
        )

    # @intent:responsibility Snapshotの購読者を登録し、登録解除用の関数を返します。
    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def read_memory(self, start: int, length: int) -> bytes:
        return self._adapter.read_memory(start, length)

    def disassemble(self, start: int, length: int) -> List[Tuple[int, str, str]]:
        return self._adapter.disassemble(start, length)

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _clear_trace(self) -> None:
        self._last_instruction = ""
        self._instructions_executed = 0
        self._cycle_count = 0
        self._bus_activity = ()

    def _set_state(self, new_state: RunState) -> None:
        if new_state != self._run_state:
            logger.debug("RunState %s -> %s", self._run_state.value, new_state.value)
        self._run_state = new_state

    # --- Timer ---

    def _timer_active(self) -> bool:
        return self._timer is not None and self._timer.active

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.debug("Step timer cancelled")

    # --- Commands ---

    # @intent:responsibility ソースをコンパイルし、成功時のみ新しいイメージをロードしてリセットします。
    # @intent:post-condition 失敗時はエンジンの状態もRunStateも変更せず、CompileErrorのみを設定します。
    def compile_and_load(self, source: str) -> bool:
        try:
            image = self._adapter.compile(source)
        except ParseError as e:
            logger.info("Compile failed: %s", e)
            self._compile_error = CompileError(e.message, e.line)
            self._publish()
            return False

        self._cancel_timer()
        self._adapter.load(image)
        self._adapter.reset()
        self._program = image
        self._clear_trace()
        self._set_state(RunState.IDLE)
        logger.info("Program loaded (%d bytes)", len(image))
        self._publish()
        return True

    # @intent:responsibility 1命令を手動実行します。
    # @intent:pre-condition RUNNINGでもHALTEDでもないこと。満たさない場合は何もせずFalseを返します。
    # @intent:post-condition EngineFaultで中断した場合も、再送出の前に変化後の状態を公開します。
    def step(self) -> bool:
        if not self.can_step():
            logger.debug("step() rejected in state %s", self._run_state.value)
            return False

        self._set_state(RunState.STEPPING)
        try:
            self._step_once()
        finally:
            if self._run_state == RunState.STEPPING:
                self._set_state(RunState.IDLE)
            self._publish()
        return True

    # @intent:responsibility 自動実行を開始します。
    # @intent:pre-condition IDLEであり、有効なタイマーが存在しないこと。
    def run(self) -> bool:
        if self._timer_active():
            logger.debug("run() rejected: step timer already active")
            return False
        if self._run_state != RunState.IDLE or self._adapter.is_halted():
            logger.debug("run() rejected in state %s", self._run_state.value)
            return False

        self._timer = self._scheduler.schedule_repeating(self._interval_ms, self._on_tick)
        self._set_state(RunState.RUNNING)
        logger.debug("Step timer started at %d ms", self._interval_ms)
        self._publish()
        return True

    # @intent:responsibility 自動実行を停止します。タイマーのみを止めるため、run()で同じ位置から再開できます。
    def pause(self) -> bool:
        if self._run_state != RunState.RUNNING:
            logger.debug("pause() rejected in state %s", self._run_state.value)
            return False
        self._cancel_timer()
        self._set_state(RunState.IDLE)
        self._publish()
        return True

    # @intent:responsibility タイマーを止め、レジスタを初期化します。メモリとI/Oポートは保持されます。
    def reset(self) -> None:
        self._cancel_timer()
        self._adapter.reset()
        self._clear_trace()
        self._set_state(RunState.IDLE)
        self._publish()

    # @intent:responsibility 速度値から新しい間隔を計算します。反映は次回のタイマー開始時です。
    def set_cadence(self, ui_value: int) -> int:
        self._interval_ms = self._cadence.interval_for(ui_value)
        logger.debug("Cadence set to %d ms (speed %d)", self._interval_ms, ui_value)
        self._publish()
        return self._interval_ms

    def edit_io_port(self, address: int, data: int) -> bool:
        changed = self._adapter.write_io_port(address, data)
        if not changed:
            logger.info("Ignored write of %r to I/O port %r", data, address)
        self._publish()
        return changed

    def add_io_port(self, address: int) -> bool:
        added = self._adapter.add_io_port(address)
        if not added:
            logger.info("Ignored add of I/O port %r: out of range or already present", address)
        self._publish()
        return added

    def remove_io_port(self, address: int) -> bool:
        removed = self._adapter.remove_io_port(address)
        if not removed:
            logger.debug("Ignored remove of unregistered I/O port %r", address)
        self._publish()
        return removed

    def dismiss_compile_error(self) -> None:
        if self._compile_error is None:
            return
        self._compile_error = None
        self._publish()

    # --- Execution primitive ---

    # @intent:responsibility 手動ステップとタイマーティックが共有する1命令実行とHALT検出。
    def _step_once(self) -> None:
        try:
            snapshot = self._adapter.step_once()
        except EngineFault:
            logger.exception("Engine fault in state %s", self._run_state.value)
            raise
        self._instructions_executed += 1
        self._last_instruction = snapshot.metadata.symbol_info or snapshot.operation.text
        self._cycle_count = snapshot.metadata.cycle_count
        self._bus_activity = tuple(snapshot.bus_activity)
        if self._adapter.is_halted():
            self._cancel_timer()
            self._set_state(RunState.HALTED)
            logger.info("CPU halted after %d instructions", self._instructions_executed)

    def _on_tick(self) -> None:
        if self._run_state != RunState.RUNNING:
            return
        try:
            self._step_once()
        except EngineFault:
            self._cancel_timer()
            self._set_state(RunState.IDLE)
            self._publish()
            raise
        self._publish()
