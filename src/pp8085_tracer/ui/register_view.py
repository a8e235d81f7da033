# pp8085_tracer/ui/register_view.py
"""
8085のレジスタを表示するウィジェット。
レジスタレイアウト情報を利用して動的にUIを構築し、RegisterSnapshotから値を描画します。
"""
from typing import Dict, List
from PySide6.QtWidgets import QWidget, QVBoxLayout, QFormLayout, QLabel, QGroupBox
from PySide6.QtCore import Qt

from pp8085_tracer.common.types import RegisterLayoutInfo
from pp8085_tracer.engine.adapter import RegisterSnapshot
from pp8085_tracer.ui.theme import get_monospace_font_family

# @intent:responsibility レジスタ値を表示するUIウィジェットを提供します。
class RegisterView(QWidget):
    """
    CPUのレジスタ状態を表示するウィジェット。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self._font_family = get_monospace_font_family()
        self._register_labels: Dict[str, QLabel] = {}
        self._register_widths: Dict[str, int] = {}
        self._accent = "#FFD700"
        self._halt_label = QLabel("")

    # @intent:responsibility レイアウト情報に基づいてUIを構築します。
    def set_layout_info(self, layout_info: List[RegisterLayoutInfo]) -> None:
        while self.layout.count():
            item = self.layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self._register_labels.clear()
        self._register_widths.clear()

        for group in layout_info:
            group_box = QGroupBox(group.group_name)
            group_box.setStyleSheet("QGroupBox { font-weight: bold; margin-top: 20px; }")
            group_layout = QFormLayout(group_box)
            group_layout.setLabelAlignment(Qt.AlignLeft)
            group_layout.setContentsMargins(10, 15, 10, 10)
            group_layout.setSpacing(5)

            for reg in group.registers:
                hex_width = (reg.width + 3) // 4  # 16bit -> 4chars, 8bit -> 2chars
                self._register_widths[reg.name] = hex_width

                label_name = QLabel(f"{reg.name}:")
                label_name.setStyleSheet("font-weight: bold;")
                label_value = QLabel(f"0x{'0' * hex_width}")
                label_value.setAlignment(Qt.AlignRight)

                group_layout.addRow(label_name, label_value)
                self._register_labels[reg.name] = label_value

            self.layout.addWidget(group_box)

        self._halt_label = QLabel("")
        self.layout.addWidget(self._halt_label)
        self.layout.addStretch()
        self._apply_accent()

    def set_accent_color(self, color: str) -> None:
        self._accent = color
        self._apply_accent()

    def _apply_accent(self) -> None:
        for label in self._register_labels.values():
            label.setStyleSheet(f"font-family: '{self._font_family}', monospace; color: {self._accent};")

    # @intent:responsibility Snapshotのレジスタ値で表示を更新します。
    def update_registers(self, registers: RegisterSnapshot) -> None:
        for name, value in registers.as_register_map().items():
            if name in self._register_labels:
                width = self._register_widths[name]
                self._register_labels[name].setText(f"0x{value:0{width}X}")
        self._halt_label.setText("HALTED" if registers.halted else "")

    def register_text(self, name: str) -> str:
        return self._register_labels[name].text()
