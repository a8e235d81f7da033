# pp8085_tracer/ui/io_port_view.py
"""
I/Oポートの管理UIウィジェット。
"""
import re
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QGridLayout, QLabel, QLineEdit, QPushButton, QTableWidget,
    QTableWidgetItem, QMessageBox, QHeaderView
)
from PySide6.QtCore import Qt, Signal, Slot

from pp8085_tracer.common.types import IoPortMap
from pp8085_tracer.ui.theme import get_monospace_font

PORT_COLUMN = 0
DATA_COLUMN = 1


# @intent:utility_function "1F", "0x1F", "1Fh", "$1F" 形式の16進文字列を解析します。8bitに収まらない場合はNone。
def parse_hex_byte(text: str) -> Optional[int]:
    value = text.strip().upper()
    if value.startswith("0X"):
        value = value[2:]
    elif value.startswith("$"):
        value = value[1:]
    elif value.endswith("H"):
        value = value[:-1]
    if not re.fullmatch(r'[0-9A-F]{1,2}', value):
        return None
    return int(value, 16)


class IoPortView(QWidget):
    """
    登録済みI/Oポートの一覧を表示し、データ列の編集とポートの追加・削除を受け付けます。
    操作はシグナルとして通知され、表示はset_ports()で与えられた集合を常に反映します。
    """
    port_added = Signal(int)
    port_removed = Signal(int)
    port_edited = Signal(int, int)  # port, data

    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)
        self._ports: IoPortMap = {}

        self.port_table = QTableWidget(0, 2)
        self.port_table.setHorizontalHeaderLabels(["Port", "Data"])
        self.port_table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.port_table.verticalHeader().setVisible(False)
        self.port_table.setSelectionBehavior(QTableWidget.SelectRows)
        self.port_table.setFont(get_monospace_font(10))
        self.port_table.itemChanged.connect(self._on_item_changed)
        self.layout.addWidget(self.port_table)

        form = QGridLayout()
        form.addWidget(QLabel("Port (hex):"), 0, 0)
        self.port_input = QLineEdit()
        self.port_input.setPlaceholderText("00-FF")
        self.port_input.returnPressed.connect(self._add_from_input)
        form.addWidget(self.port_input, 0, 1, 1, 2)
        self.add_button = QPushButton("Add Port")
        self.add_button.clicked.connect(self._add_from_input)
        form.addWidget(self.add_button, 1, 1)
        self.remove_button = QPushButton("Remove Port")
        self.remove_button.clicked.connect(self._remove_from_input)
        form.addWidget(self.remove_button, 1, 2)
        self.layout.addLayout(form)

    # @intent:responsibility 表示をポート集合で置き換えます。編集中のシグナルは発行しません。
    def set_ports(self, ports: IoPortMap) -> None:
        if ports == self._ports and self.port_table.rowCount() == len(ports):
            return
        same_ports = sorted(ports) == sorted(self._ports) and self.port_table.rowCount() == len(ports)
        self._ports = dict(ports)
        self.port_table.blockSignals(True)
        try:
            if same_ports:
                # 編集中のセルを置き換えないよう、データ列のテキストのみ更新する
                for row, (_, data) in enumerate(sorted(self._ports.items())):
                    self.port_table.item(row, DATA_COLUMN).setText(f"{data:02X}")
                return
            self.port_table.setRowCount(len(self._ports))
            for row, (port, data) in enumerate(sorted(self._ports.items())):
                port_item = QTableWidgetItem(f"{port:02X}")
                port_item.setFlags(port_item.flags() & ~Qt.ItemIsEditable)
                port_item.setData(Qt.UserRole, port)
                self.port_table.setItem(row, PORT_COLUMN, port_item)
                self.port_table.setItem(row, DATA_COLUMN, QTableWidgetItem(f"{data:02X}"))
        finally:
            self.port_table.blockSignals(False)

    def ports(self) -> IoPortMap:
        return dict(self._ports)

    def selected_port(self) -> Optional[int]:
        rows = {item.row() for item in self.port_table.selectedItems()}
        if len(rows) != 1:
            return None
        return self.port_table.item(rows.pop(), PORT_COLUMN).data(Qt.UserRole)

    @Slot(QTableWidgetItem)
    def _on_item_changed(self, item: QTableWidgetItem) -> None:
        if item.column() != DATA_COLUMN:
            return
        port = self.port_table.item(item.row(), PORT_COLUMN).data(Qt.UserRole)
        data = parse_hex_byte(item.text())
        if data is None:
            self._warn(f"'{item.text()}' is not a valid 8-bit hex value.")
            self.port_table.blockSignals(True)
            item.setText(f"{self._ports.get(port, 0):02X}")
            self.port_table.blockSignals(False)
            return
        self.port_edited.emit(port, data)

    # @intent:responsibility 入力された16進アドレスを検証し、追加要求を通知します。
    def request_add(self, text: str) -> bool:
        port = parse_hex_byte(text)
        if port is None:
            self._warn(f"'{text}' is not a valid port address (00-FF).")
            return False
        if port in self._ports:
            self._warn(f"Port {port:02X} already exists.")
            return False
        self.port_added.emit(port)
        return True

    def request_remove(self, text: str) -> bool:
        port = parse_hex_byte(text)
        if port is None or port not in self._ports:
            self._warn(f"Port '{text}' is not registered.")
            return False
        self.port_removed.emit(port)
        return True

    @Slot()
    def _add_from_input(self) -> None:
        if self.request_add(self.port_input.text()):
            self.port_input.clear()

    # @intent:responsibility 入力欄が空の場合は選択行のポートを削除対象とします。
    @Slot()
    def _remove_from_input(self) -> None:
        text = self.port_input.text().strip()
        if not text:
            selected = self.selected_port()
            if selected is None:
                return
            text = f"{selected:02X}"
        if self.request_remove(text):
            self.port_input.clear()

    def _warn(self, message: str) -> None:
        QMessageBox.warning(self, "I/O Port", message)
