# tests/ui/test_views.py
"""
メモリビュー、I/Oポートビュー、コードビュー、バスアクティビティ、レジスタ・フラグビューの表示ロジックを検証するテスト。
UIウィジェットですが、QApplicationがあればロジックのテストは可能です。
"""
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication, QWidget

from pp8085_tracer.arch.i8085.cpu import I8085Cpu
from pp8085_tracer.engine.adapter import RegisterSnapshot
from pp8085_tracer.common.types import ListingLine
from pp8085_tracer.transport.bus import Bus, BusAccess, BusAccessType
from pp8085_tracer.ui.bus_activity_view import BusActivityView
from pp8085_tracer.ui.code_view import CodeView
from pp8085_tracer.ui.memory_view import MemoryView, BYTES_PER_ROW
from pp8085_tracer.ui.io_port_view import IoPortView, parse_hex_byte
from pp8085_tracer.ui.register_view import RegisterView
from pp8085_tracer.ui.flag_view import FlagView
from pp8085_tracer.ui.theme import apply_theme, other_theme, PC_ROW_COLORS, LIGHT, DARK

CAPACITY = 0x2000

# PySide6のテストにはQApplicationのインスタンスが必要
@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app

def _pattern_reader(start: int, length: int) -> bytes:
    end = min(CAPACITY, start + length)
    return bytes(addr & 0xFF for addr in range(start, end))

class TestMemoryView:
    @pytest.fixture
    def view(self, qapp):
        view = MemoryView()
        view.set_reader(_pattern_reader, CAPACITY)
        return view

    def test_first_page(self, view):
        assert view.page == 0
        assert view.rows_per_page == 10
        assert view.page_count() == 52
        assert view.table.rowCount() == 10
        assert view.table.columnCount() == BYTES_PER_ROW + 1
        assert view.cell_text(1, 0) == "10"
        assert view.table.verticalHeaderItem(1).text() == "0010"
        assert not view.prev_button.isEnabled()

    def test_ascii_column(self, view):
        view.show_address(0x40)
        row = (0x40 - view.page_start()) // BYTES_PER_ROW
        assert view.cell_text(row, BYTES_PER_ROW) == "@ABCDEFGHIJKLMNO"
        assert view.cell_text(0, BYTES_PER_ROW) == "." * 16

    def test_paging(self, view):
        view.previous_page()
        assert view.page == 0

        view.next_page()
        assert view.page == 1
        assert view.page_start() == 160
        assert view.cell_text(0, 0) == "A0"

        for _ in range(100):
            view.next_page()
        assert view.page == 51
        # 最終ページは32バイトのみ
        assert view.table.rowCount() == 2
        assert not view.next_button.isEnabled()

    def test_rows_per_page_keeps_visible_address(self, view):
        view.show_address(0x1000)
        assert view.page == 25

        view.set_rows_per_page(256)
        assert view.rows_per_page == 256
        assert view.page_count() == 2
        assert view.page == 0

        view.show_address(0x1800)
        assert view.page == 1
        view.set_rows_per_page(50)
        assert view.page_start() <= 0x1000 < view.page_start() + 50 * BYTES_PER_ROW

    def test_unsupported_rows_per_page(self, view):
        with pytest.raises(ValueError):
            view.set_rows_per_page(7)

    def test_highlight_address(self, view):
        view.set_highlight_color(PC_ROW_COLORS[DARK])
        view.set_highlight_address(0x12)
        item = view.table.item(1, 2)
        assert item.background().color() == PC_ROW_COLORS[DARK]

    def test_view_without_reader_is_empty(self, qapp):
        view = MemoryView()
        view.refresh()
        assert view.table.rowCount() == 0
        assert view.page_count() == 1

@pytest.mark.parametrize("text, expected", [
    ("1F", 0x1F),
    ("0x1f", 0x1F),
    ("$20", 0x20),
    ("ffh", 0xFF),
    (" 7 ", 0x07),
    ("100", None),
    ("zz", None),
    ("", None),
])
def test_parse_hex_byte(text, expected):
    assert parse_hex_byte(text) == expected

class TestIoPortView:
    @pytest.fixture
    def view(self, qapp, monkeypatch):
        view = IoPortView()
        view.warnings = []
        monkeypatch.setattr(view, "_warn", view.warnings.append)
        view.set_ports({0x01: 0x55})
        return view

    def test_set_ports(self, view):
        assert view.ports() == {0x01: 0x55}
        assert view.port_table.rowCount() == 1
        assert view.port_table.item(0, 0).text() == "01"
        assert view.port_table.item(0, 1).text() == "55"

    def test_request_add(self, view):
        added = []
        view.port_added.connect(added.append)
        assert view.request_add("20h")
        assert added == [0x20]

    def test_request_add_rejects_invalid_and_duplicate(self, view):
        added = []
        view.port_added.connect(added.append)
        assert not view.request_add("1FF")
        assert not view.request_add("01")
        assert added == []
        assert len(view.warnings) == 2

    def test_request_remove(self, view):
        removed = []
        view.port_removed.connect(removed.append)
        assert view.request_remove("1")
        assert not view.request_remove("02")
        assert removed == [0x01]

    def test_edit_data_cell_emits_signal(self, view):
        edited = []
        view.port_edited.connect(lambda port, data: edited.append((port, data)))
        view.port_table.item(0, 1).setText("7F")
        assert edited == [(0x01, 0x7F)]

    def test_invalid_edit_is_reverted(self, view):
        edited = []
        view.port_edited.connect(lambda port, data: edited.append((port, data)))
        view.port_table.item(0, 1).setText("XYZ")
        assert edited == []
        assert view.port_table.item(0, 1).text() == "55"
        assert view.warnings

    def test_add_button_uses_input_field(self, view):
        added = []
        view.port_added.connect(added.append)
        view.port_input.setText("0x10")
        view.add_button.click()
        assert added == [0x10]
        assert view.port_input.text() == ""

    def test_remove_button_falls_back_to_selected_row(self, view):
        removed = []
        view.port_removed.connect(removed.append)
        view.remove_button.click()
        assert removed == []
        view.port_table.selectRow(0)
        view.remove_button.click()
        assert removed == [0x01]


class TestCodeView:
    LINES = [(0x0000, "3E 0F", "MVI A,0FH"), (0x0002, "3D", "DCR A"), (0x0003, "C2 02 00", "JNZ 0002H")]
    LISTING = [
        ListingLine(2, 0x0000, bytes([0x3E, 0x0F]), "MVI A, fh"),
        ListingLine(3, 0x0002, bytes([0x3D]), "NEXT: DCR A"),
        ListingLine(4, 0x0003, bytes([0xC2, 0x02, 0x00]), "JNZ NEXT"),
    ]

    @pytest.fixture
    def view(self, qapp):
        view = CodeView()
        view.load_program(self.LINES, {"NEXT": 0x0002}, self.LISTING)
        return view

    def test_rows_carry_label_and_source_line(self, view):
        assert view.table.rowCount() == 3
        assert view.row_text(0) == ["2", "", "0000", "3E 0F", "MVI A,0FH"]
        assert view.row_text(1) == ["3", "NEXT", "0002", "3D", "DCR A"]

    def test_pc_highlight_moves(self, view):
        view.set_highlight_color(PC_ROW_COLORS[LIGHT])
        view.set_pc(0x0002)
        assert view.current_row() == 1
        assert view.table.item(1, 4).background().color() == PC_ROW_COLORS[LIGHT]

        view.set_pc(0x0003)
        assert view.current_row() == 2
        assert view.table.item(1, 4).background().color() != PC_ROW_COLORS[LIGHT]

    def test_pc_outside_program_clears_highlight(self, view):
        view.set_pc(0x0000)
        view.set_pc(0x1000)
        assert view.current_row() is None

    def test_clear(self, view):
        view.clear()
        assert view.table.rowCount() == 0


class TestBusActivityView:
    def test_rows_follow_access_order(self, qapp):
        view = BusActivityView()
        view.update_activity([
            BusAccess(0x0004, 0xD3, BusAccessType.READ),
            BusAccess(0x0005, 0x01, BusAccessType.READ),
            BusAccess(0x01, 0x0E, BusAccessType.IO_WRITE),
        ])
        assert view.rows() == [("MEM R", "0004", "D3"), ("MEM R", "0005", "01"), ("IO  W", "01", "0E")]

        view.update_activity(())
        assert view.rows() == []


class TestStatusViews:
    def test_register_view(self, qapp):
        view = RegisterView()
        view.set_layout_info(I8085Cpu(Bus()).get_register_layout())
        view.update_registers(RegisterSnapshot(a=0x12, sp=0x1F00, ir=0x3E, halted=True))
        assert view.register_text("A") == "0x12"
        assert view.register_text("SP") == "0x1F00"
        assert view.register_text("IR") == "0x3E"
        assert view._halt_label.text() == "HALTED"

    def test_flag_view(self, qapp):
        view = FlagView()
        view.update_flags(RegisterSnapshot(flag_z=True, flag_cy=True))
        assert [view.flag_text(name) for name in ("S", "Z", "AC", "P", "CY")] == ["0", "1", "0", "0", "1"]

class TestTheme:
    def test_other_theme(self):
        assert other_theme(LIGHT) == DARK
        assert other_theme(DARK) == LIGHT

    def test_unknown_theme(self, qapp):
        with pytest.raises(ValueError):
            apply_theme(QWidget(), "solarized")
