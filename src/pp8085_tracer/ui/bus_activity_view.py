# pp8085_tracer/ui/bus_activity_view.py
"""
直前の命令で発生したバスアクセスを一覧表示するウィジェット。
"""
from typing import Iterable

from PySide6.QtWidgets import QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem, QHeaderView

from pp8085_tracer.transport.bus import BusAccess, BusAccessType
from pp8085_tracer.ui.theme import get_monospace_font

ACCESS_LABELS = {
    BusAccessType.READ: "MEM R",
    BusAccessType.WRITE: "MEM W",
    BusAccessType.IO_READ: "IO  R",
    BusAccessType.IO_WRITE: "IO  W",
}


# @intent:responsibility 1命令分のバスアクセス（フェッチ、オペランド読み出し、メモリ/I/O書き込み）を発生順に表示します。
class BusActivityView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self.table = QTableWidget(0, 3)
        self.table.setHorizontalHeaderLabels(["Access", "Address", "Data"])
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setFont(get_monospace_font(10))
        self.layout.addWidget(self.table)

    def update_activity(self, accesses: Iterable[BusAccess]) -> None:
        accesses = list(accesses)
        self.table.setRowCount(len(accesses))
        for row, access in enumerate(accesses):
            # I/O空間のアドレスは8bit
            is_io = access.access_type in (BusAccessType.IO_READ, BusAccessType.IO_WRITE)
            address = f"{access.address:02X}" if is_io else f"{access.address:04X}"
            self.table.setItem(row, 0, QTableWidgetItem(ACCESS_LABELS[access.access_type]))
            self.table.setItem(row, 1, QTableWidgetItem(address))
            self.table.setItem(row, 2, QTableWidgetItem(f"{access.data:02X}"))

    def rows(self):
        return [
            tuple(self.table.item(row, column).text() for column in range(3))
            for row in range(self.table.rowCount())
        ]
