# pp8085_tracer/ui/flag_view.py
"""
8085のフラグ（S, Z, AC, P, CY）を表示するウィジェット。
"""
from typing import Dict
from PySide6.QtWidgets import QWidget, QHBoxLayout, QLabel
from PySide6.QtCore import Qt

from pp8085_tracer.engine.adapter import RegisterSnapshot
from pp8085_tracer.ui.theme import get_monospace_font_family

FLAG_NAMES = ("S", "Z", "AC", "P", "CY")

# @intent:responsibility フラグ状態を表示するUIウィジェットを提供します。
class FlagView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QHBoxLayout(self)
        self.layout.setContentsMargins(10, 10, 10, 10)
        self.layout.setSpacing(15)

        self._font_family = get_monospace_font_family()
        self._flag_labels: Dict[str, QLabel] = {}

        for flag_name in FLAG_NAMES:
            label_name = QLabel(f"{flag_name}:")
            label_name.setStyleSheet("font-weight: bold;")

            label_value = QLabel("0")
            label_value.setFixedWidth(15)
            label_value.setAlignment(Qt.AlignCenter)

            self.layout.addWidget(label_name)
            self.layout.addWidget(label_value)
            self._flag_labels[flag_name] = label_value

        self.layout.addStretch(1)
        self.set_accent_color("#FFD700")

    def set_accent_color(self, color: str) -> None:
        for label in self._flag_labels.values():
            label.setStyleSheet(f"font-family: '{self._font_family}', monospace; color: {color};")

    # @intent:responsibility Snapshotのフラグ値で表示を更新します。
    def update_flags(self, registers: RegisterSnapshot) -> None:
        for name, is_set in registers.as_flag_map().items():
            self._flag_labels[name].setText("1" if is_set else "0")

    def flag_text(self, name: str) -> str:
        return self._flag_labels[name].text()
