# pp8085_tracer/ui/code_view.py
"""
ロード済みプログラムの逆アセンブル結果を表示するウィジェット。
"""
from typing import Dict, Iterable, List, Optional, Tuple

from PySide6.QtWidgets import QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem, QHeaderView
from PySide6.QtGui import QColor
from PySide6.QtCore import Qt

from pp8085_tracer.common.types import ListingLine, SymbolMap
from pp8085_tracer.ui.theme import get_monospace_font

COLUMNS = ("Line", "Label", "Address", "Bytes", "Instruction")
ADDRESS_COLUMN = 2
SCROLL_MARGIN = 5

DisassembledLine = Tuple[int, str, str]


# @intent:responsibility 逆アセンブルされたコードを表形式で表示し、現在のPCの行をハイライトします。
class CodeView(QWidget):
    """
    メモリ上の命令を1行1命令で表示します。
    ソースのラベルと行番号はコンパイル結果から補われ、メモリの内容そのものは逆アセンブラが解釈します。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget(0, len(COLUMNS))
        self.table.setHorizontalHeaderLabels(list(COLUMNS))
        header = self.table.horizontalHeader()
        for column in range(len(COLUMNS) - 1):
            header.setSectionResizeMode(column, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(len(COLUMNS) - 1, QHeaderView.Stretch)
        self.table.setFont(get_monospace_font(10))
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setShowGrid(False)
        self.layout.addWidget(self.table)

        self._rows: Dict[int, int] = {}  # address -> row
        self._current_row: Optional[int] = None
        self._highlight_color = QColor("#404000")

    # @intent:responsibility 逆アセンブル結果で表を作り直します。ラベルと行番号は命令の先頭アドレスで対応付けます。
    def load_program(self, lines: Iterable[DisassembledLine], symbols: SymbolMap,
                     listing: Iterable[ListingLine] = ()) -> None:
        labels = {address: name for name, address in symbols.items()}
        source_lines = {entry.address: entry.line_number for entry in listing if entry.data}

        lines = list(lines)
        self._rows = {}
        self._current_row = None
        self.table.setRowCount(len(lines))
        for row, (address, hex_bytes, text) in enumerate(lines):
            line_number = source_lines.get(address)
            values = (
                str(line_number) if line_number is not None else "",
                labels.get(address, ""),
                f"{address:04X}",
                hex_bytes,
                text,
            )
            for column, value in enumerate(values):
                self.table.setItem(row, column, QTableWidgetItem(value))
            self._rows[address] = row

    def clear(self) -> None:
        self._rows = {}
        self._current_row = None
        self.table.setRowCount(0)

    def set_highlight_color(self, color: QColor) -> None:
        self._highlight_color = color
        if self._current_row is not None:
            self._paint_row(self._current_row, color)

    # @intent:responsibility PCの行をハイライトし、その先の数行が見えるようにスクロールします。
    def set_pc(self, pc: int) -> None:
        row = self._rows.get(pc)
        if row == self._current_row:
            return
        if self._current_row is not None:
            self._paint_row(self._current_row, None)
        self._current_row = row
        if row is None:
            return
        self._paint_row(row, self._highlight_color)
        self.table.scrollToItem(self.table.item(row, ADDRESS_COLUMN), QTableWidget.EnsureVisible)
        look_ahead = min(row + SCROLL_MARGIN, self.table.rowCount() - 1)
        if look_ahead > row:
            self.table.scrollToItem(self.table.item(look_ahead, ADDRESS_COLUMN), QTableWidget.EnsureVisible)

    def current_row(self) -> Optional[int]:
        return self._current_row

    def row_text(self, row: int) -> List[str]:
        return [self.table.item(row, column).text() for column in range(len(COLUMNS))]

    def _paint_row(self, row: int, color: Optional[QColor]) -> None:
        for column in range(len(COLUMNS)):
            item = self.table.item(row, column)
            if color is None:
                item.setData(Qt.BackgroundRole, None)
            else:
                item.setBackground(color)
