# pp8085_tracer/ui/memory_view.py
"""
メモリの内容を16進数とASCIIでページ単位に表示するウィジェット。
"""
from typing import Callable, Optional
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QTableWidget, QTableWidgetItem,
    QComboBox, QPushButton, QLabel, QHeaderView, QAbstractItemView
)
from PySide6.QtGui import QColor
from PySide6.QtCore import Qt, Slot

from pp8085_tracer.ui.theme import get_monospace_font

BYTES_PER_ROW = 16
ROWS_PER_PAGE_CHOICES = (10, 50, 100, 256)

# メモリ読み出し関数: (start, length) -> bytes
MemoryReader = Callable[[int, int], bytes]

# @intent:responsibility メモリの内容を16進数とASCII形式で、ページ送り可能なテーブルとして表示します。
class MemoryView(QWidget):
    """
    1行16バイトのメモリダンプを表示します。1ページの行数は10/50/100/256から選択できます。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self._reader: Optional[MemoryReader] = None
        self._capacity = 0
        self._page = 0
        self._rows_per_page = ROWS_PER_PAGE_CHOICES[0]
        self._highlight_address: Optional[int] = None
        self._highlight_color = QColor("#404000")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        controls = QHBoxLayout()
        self.prev_button = QPushButton("<")
        self.prev_button.clicked.connect(self.previous_page)
        self.next_button = QPushButton(">")
        self.next_button.clicked.connect(self.next_page)
        self.page_label = QLabel("")
        self.rows_combo = QComboBox()
        for rows in ROWS_PER_PAGE_CHOICES:
            self.rows_combo.addItem(str(rows), rows)
        self.rows_combo.currentIndexChanged.connect(self._on_rows_changed)

        controls.addWidget(self.prev_button)
        controls.addWidget(self.page_label)
        controls.addWidget(self.next_button)
        controls.addStretch(1)
        controls.addWidget(QLabel("Rows:"))
        controls.addWidget(self.rows_combo)
        self.layout.addLayout(controls)

        self.table = QTableWidget(0, BYTES_PER_ROW + 1, self)
        self.table.setFont(get_monospace_font(10))
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.setHorizontalHeaderLabels([f"{i:X}" for i in range(BYTES_PER_ROW)] + ["ASCII"])
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeToContents)
        self.layout.addWidget(self.table)

    def set_reader(self, reader: MemoryReader, capacity: int) -> None:
        self._reader = reader
        self._capacity = capacity
        self._page = min(self._page, self.page_count() - 1)
        self.refresh()

    def set_highlight_color(self, color: QColor) -> None:
        self._highlight_color = color
        self.refresh()

    @property
    def page(self) -> int:
        return self._page

    @property
    def rows_per_page(self) -> int:
        return self._rows_per_page

    def page_count(self) -> int:
        bytes_per_page = self._rows_per_page * BYTES_PER_ROW
        return max(1, -(-self._capacity // bytes_per_page))

    def page_start(self) -> int:
        return self._page * self._rows_per_page * BYTES_PER_ROW

    def set_rows_per_page(self, rows: int) -> None:
        index = self.rows_combo.findData(rows)
        if index < 0:
            raise ValueError(f"Unsupported rows per page: {rows}")
        self.rows_combo.setCurrentIndex(index)

    @Slot(int)
    def _on_rows_changed(self, index: int) -> None:
        first_address = self.page_start()
        self._rows_per_page = self.rows_combo.itemData(index)
        # 表示中の先頭アドレスを含むページを維持する
        self._page = min(first_address // (self._rows_per_page * BYTES_PER_ROW), self.page_count() - 1)
        self.refresh()

    @Slot()
    def previous_page(self) -> None:
        if self._page > 0:
            self._page -= 1
            self.refresh()

    @Slot()
    def next_page(self) -> None:
        if self._page < self.page_count() - 1:
            self._page += 1
            self.refresh()

    # @intent:responsibility 指定アドレス（通常はPC）の行をハイライトします。ページは自動では移動しません。
    def set_highlight_address(self, address: Optional[int]) -> None:
        self._highlight_address = address
        self.refresh()

    def show_address(self, address: int) -> None:
        self._page = min(address // (self._rows_per_page * BYTES_PER_ROW), self.page_count() - 1)
        self.refresh()

    # @intent:responsibility 現在のページのメモリ内容を読み込み、テーブルを再描画します。
    def refresh(self) -> None:
        self.page_label.setText(f"Page {self._page + 1}/{self.page_count()}")
        self.prev_button.setEnabled(self._page > 0)
        self.next_button.setEnabled(self._page < self.page_count() - 1)
        if self._reader is None:
            self.table.setRowCount(0)
            return

        start = self.page_start()
        data = self._reader(start, self._rows_per_page * BYTES_PER_ROW)
        row_count = -(-len(data) // BYTES_PER_ROW)
        self.table.setRowCount(row_count)

        for row in range(row_count):
            row_address = start + row * BYTES_PER_ROW
            chunk = data[row * BYTES_PER_ROW:(row + 1) * BYTES_PER_ROW]
            self.table.setVerticalHeaderItem(row, QTableWidgetItem(f"{row_address:04X}"))
            highlight = (
                self._highlight_address is not None
                and row_address <= self._highlight_address < row_address + BYTES_PER_ROW
            )
            for col in range(BYTES_PER_ROW):
                text = f"{chunk[col]:02X}" if col < len(chunk) else ""
                item = QTableWidgetItem(text)
                item.setTextAlignment(Qt.AlignCenter)
                if highlight and row_address + col == self._highlight_address:
                    item.setBackground(self._highlight_color)
                self.table.setItem(row, col, item)
            ascii_text = "".join(chr(b) if 32 <= b <= 126 else '.' for b in chunk)
            self.table.setItem(row, BYTES_PER_ROW, QTableWidgetItem(ascii_text))

    def cell_text(self, row: int, column: int) -> str:
        item = self.table.item(row, column)
        return item.text() if item else ""
