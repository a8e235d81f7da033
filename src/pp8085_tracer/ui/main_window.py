# pp8085_tracer/ui/main_window.py
"""
メインウィンドウの実装。
アプリケーションの主要なUIコンポーネントを保持し、ユーザー操作を実行コントローラへ転送します。
表示は常にコントローラから通知されるControllerSnapshotに基づいて更新されます。
"""
import logging
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QDockWidget, QTabWidget, QToolBar, QLabel, QMessageBox,
    QPlainTextEdit, QSlider, QWidget, QHBoxLayout, QFileDialog
)
from PySide6.QtGui import QAction, QCloseEvent, QTextOption
from PySide6.QtCore import Qt, QTimer, Slot

from pp8085_tracer.common.errors import EngineFault
from pp8085_tracer.controller.controller import ExecutionController
from pp8085_tracer.controller.state import CompileError, ControllerSnapshot, RunState
from pp8085_tracer.engine.adapter import ProgramImage
from .register_view import RegisterView
from .flag_view import FlagView
from .memory_view import MemoryView
from .io_port_view import IoPortView
from .code_view import CodeView
from .bus_activity_view import BusActivityView
from .theme import apply_theme as apply_palette, other_theme, get_monospace_font, ACCENT_COLORS, PC_ROW_COLORS, LIGHT

logger = logging.getLogger(__name__)

DEFAULT_PROGRAM = """; Count down from 15 to 0
        MVI A, fh
NEXT:   DCR A
        JNZ NEXT
        HLT
"""


# @intent:responsibility アプリケーションのメインウィンドウを定義し、UIの主要なコンポーネントを組み立てます。
class MainWindow(QMainWindow):
    """
    アプリケーションのメインウィンドウクラス。
    """
    def __init__(self, controller: ExecutionController, theme: str = LIGHT,
                 initial_source: Optional[str] = None, parent=None):
        super(MainWindow, self).__init__(parent)
        self.setWindowTitle("PP8085 Tracer")
        self.setGeometry(100, 100, 1200, 800)
        self.setDockNestingEnabled(True)

        self._controller = controller
        self._theme = theme
        self._shown_error: Optional[CompileError] = None
        self._shown_program: Optional[ProgramImage] = None

        self._create_editor(initial_source if initial_source is not None else DEFAULT_PROGRAM)
        self._create_toolbar()
        self._create_memory_pane()
        self._create_status_inspector()
        self._create_menus()
        self.run_state_label = QLabel("")
        self.statusBar().addPermanentWidget(self.run_state_label)

        self.register_view.set_layout_info(controller.adapter.register_layout())
        self.memory_view.set_reader(controller.read_memory, controller.adapter.memory_capacity)
        self.apply_theme(theme)

        self._unsubscribe = controller.subscribe(self._on_snapshot)
        self._on_snapshot(controller.snapshot())

    @property
    def theme(self) -> str:
        return self._theme

    def _create_editor(self, source: str):
        self.editor = QPlainTextEdit(self)
        self.editor.setFont(get_monospace_font(11))
        self.editor.setWordWrapMode(QTextOption.NoWrap)
        self.editor.setPlainText(source)
        self.setCentralWidget(self.editor)

    # @intent:responsibility メニューバーを作成し、ソースファイルの読み込みアクションを追加します。
    def _create_menus(self):
        file_menu = self.menuBar().addMenu("File")
        self.open_action = QAction("Open Source...", self)
        self.open_action.setShortcut("Ctrl+O")
        self.open_action.triggered.connect(self._open_source_file)
        file_menu.addAction(self.open_action)

        view_menu = self.menuBar().addMenu("View")
        view_menu.addAction(self.theme_action)

    # @intent:responsibility 実行制御用のツールバーを作成します。
    def _create_toolbar(self):
        toolbar = QToolBar("Main Toolbar")
        self.addToolBar(toolbar)

        self.compile_action = QAction("Compile && Load", self)
        self.compile_action.setShortcut("Ctrl+B")
        self.compile_action.triggered.connect(self._compile_and_load)
        toolbar.addAction(self.compile_action)

        self.reset_action = QAction("Reset", self)
        self.reset_action.triggered.connect(self._controller.reset)
        toolbar.addAction(self.reset_action)

        self.step_action = QAction("Step", self)
        self.step_action.setShortcut("F10")
        self.step_action.triggered.connect(self._step)
        toolbar.addAction(self.step_action)

        self.run_action = QAction("Run", self)
        self.run_action.setShortcut("F5")
        self.run_action.triggered.connect(self._controller.run)
        toolbar.addAction(self.run_action)

        self.pause_action = QAction("Pause", self)
        self.pause_action.triggered.connect(self._controller.pause)
        toolbar.addAction(self.pause_action)

        toolbar.addSeparator()
        speed_box = QWidget()
        speed_layout = QHBoxLayout(speed_box)
        speed_layout.setContentsMargins(5, 0, 5, 0)
        speed_layout.addWidget(QLabel("Emulation Speed"))

        cadence = self._controller.cadence
        self.speed_slider = QSlider(Qt.Horizontal)
        self.speed_slider.setRange(cadence.speed_min, cadence.speed_max)
        self.speed_slider.setValue(cadence.speed_for(self._controller.interval_ms))
        self.speed_slider.setFixedWidth(160)
        self.speed_slider.valueChanged.connect(self._controller.set_cadence)
        speed_layout.addWidget(self.speed_slider)
        self.interval_label = QLabel("")
        speed_layout.addWidget(self.interval_label)
        toolbar.addWidget(speed_box)

        toolbar.addSeparator()
        self.theme_action = QAction("Toggle Theme", self)
        self.theme_action.triggered.connect(self.toggle_theme)
        toolbar.addAction(self.theme_action)

    def _create_memory_pane(self):
        memory_dock = QDockWidget("Machine", self)
        memory_dock.setAllowedAreas(Qt.LeftDockWidgetArea | Qt.BottomDockWidgetArea)
        tab_widget = QTabWidget()
        self.memory_view = MemoryView()
        tab_widget.addTab(self.memory_view, "Memory")
        self.code_view = CodeView()
        tab_widget.addTab(self.code_view, "Disassembly")
        self.io_port_view = IoPortView()
        self.io_port_view.port_added.connect(self._controller.add_io_port)
        self.io_port_view.port_removed.connect(self._controller.remove_io_port)
        self.io_port_view.port_edited.connect(self._controller.edit_io_port)
        tab_widget.addTab(self.io_port_view, "I/O Ports")
        memory_dock.setWidget(tab_widget)
        self.addDockWidget(Qt.BottomDockWidgetArea, memory_dock)

    # @intent:responsibility 右側のステータスインスペクタを作成します。
    def _create_status_inspector(self):
        status_dock = QDockWidget("Status Inspector", self)
        status_dock.setAllowedAreas(Qt.RightDockWidgetArea)
        tab_widget = QTabWidget()
        self.register_view = RegisterView()
        tab_widget.addTab(self.register_view, "Registers")
        self.flag_view = FlagView()
        tab_widget.addTab(self.flag_view, "Flags")
        self.bus_activity_view = BusActivityView()
        tab_widget.addTab(self.bus_activity_view, "Bus")
        status_dock.setWidget(tab_widget)
        self.addDockWidget(Qt.RightDockWidgetArea, status_dock)

    # --- Theme ---

    def apply_theme(self, theme: str) -> None:
        self._theme = theme
        apply_palette(self, theme)
        self.register_view.set_accent_color(ACCENT_COLORS[theme])
        self.flag_view.set_accent_color(ACCENT_COLORS[theme])
        self.memory_view.set_highlight_color(PC_ROW_COLORS[theme])
        self.code_view.set_highlight_color(PC_ROW_COLORS[theme])

    @Slot()
    def toggle_theme(self) -> None:
        self.apply_theme(other_theme(self._theme))

    # --- Commands ---

    @Slot()
    def _compile_and_load(self):
        if self._controller.compile_and_load(self.editor.toPlainText()):
            self.statusBar().showMessage("Program loaded", 3000)

    # @intent:responsibility 手動ステップを実行します。EngineFaultは記録した上でユーザーに通知します。
    @Slot()
    def _step(self):
        try:
            self._controller.step()
        except EngineFault as e:
            self.report_engine_fault(e)

    def report_engine_fault(self, fault: EngineFault) -> None:
        logger.error("Engine fault: %s", fault)
        QMessageBox.critical(self, "Engine Error", str(fault))

    @Slot()
    def _open_source_file(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open Assembly Source", "", "Assembly Files (*.asm *.s);;All Files (*)")
        if not file_name:
            return
        try:
            with open(file_name, 'r', encoding="utf-8") as f:
                self.editor.setPlainText(f.read())
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Failed to open {file_name}: {e}")

    # --- Rendering ---

    # @intent:responsibility ControllerSnapshotの内容に基づいてUI全体を更新します。
    def _on_snapshot(self, snapshot: ControllerSnapshot) -> None:
        running = snapshot.run_state == RunState.RUNNING
        self.step_action.setEnabled(snapshot.can_step)
        self.run_action.setEnabled(snapshot.can_run)
        self.pause_action.setEnabled(snapshot.can_pause)
        self.speed_slider.setEnabled(not running)
        self.interval_label.setText(f"{snapshot.interval_ms} ms")

        self.register_view.update_registers(snapshot.registers)
        self.flag_view.update_flags(snapshot.registers)
        self.memory_view.set_highlight_address(snapshot.registers.pc)
        self.io_port_view.set_ports(snapshot.io_ports)
        self.bus_activity_view.update_activity(snapshot.bus_activity)
        if self._controller.program is not self._shown_program:
            self._show_program(self._controller.program)
        self.code_view.set_pc(snapshot.registers.pc)

        status = snapshot.run_state.value
        if snapshot.last_instruction:
            status += (f" | {snapshot.last_instruction} | {snapshot.instructions_executed} executed"
                       f" | {snapshot.cycle_count} T-states")
        self.run_state_label.setText(status)

        if snapshot.compile_error is not None and snapshot.compile_error != self._shown_error:
            self._shown_error = snapshot.compile_error
            # リスナー内でモーダルダイアログを開かないよう、イベントループに戻ってから表示する
            error = snapshot.compile_error
            QTimer.singleShot(0, self, lambda: self._show_compile_error(error))
        elif snapshot.compile_error is None:
            self._shown_error = None

    # @intent:responsibility ロードされたプログラムのコード行のみを逆アセンブルして表示します。ORGによる空白領域は含めません。
    def _show_program(self, program: Optional[ProgramImage]) -> None:
        self._shown_program = program
        if program is None:
            self.code_view.clear()
            return
        lines = []
        for entry in program.listing:
            if entry.data:
                lines.extend(self._controller.disassemble(entry.address, len(entry.data)))
        self.code_view.load_program(lines, program.symbols, program.listing)

    # @intent:responsibility コンパイルエラーを表示し、閉じられたらエラーを破棄します。
    def _show_compile_error(self, error: CompileError) -> None:
        QMessageBox.warning(self, "Compile Error", str(error))
        self._controller.dismiss_compile_error()

    def closeEvent(self, event: QCloseEvent):
        """
        ウィンドウが閉じられる際に自動実行タイマーを停止します。
        """
        self._controller.pause()
        self._unsubscribe()
        event.accept()
