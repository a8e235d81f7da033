# tests/ui/test_qt_scheduler.py
"""
QTimerを使用した実時間でのスケジューリングを検証するテスト。
"""
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication
from PySide6.QtTest import QTest

from pp8085_tracer.common.errors import EngineFault
from pp8085_tracer.controller.controller import ExecutionController
from pp8085_tracer.controller.state import RunState
from pp8085_tracer.engine.adapter import EngineAdapter
from pp8085_tracer.ui.qt_scheduler import QtScheduler

@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app

def test_repeating_timer_and_cancel(qapp):
    ticks = []
    handle = QtScheduler().schedule_repeating(10, lambda: ticks.append(1))
    assert handle.active

    QTest.qWait(200)
    assert len(ticks) >= 3

    handle.cancel()
    handle.cancel()
    assert not handle.active
    count = len(ticks)
    QTest.qWait(100)
    assert len(ticks) == count

def test_fault_handler_receives_engine_fault(qapp):
    faults = []
    scheduler = QtScheduler(fault_handler=faults.append)

    def failing():
        raise EngineFault("boom")

    handle = scheduler.schedule_repeating(10, failing)
    QTest.qWait(100)
    handle.cancel()
    assert faults
    assert str(faults[0]) == "boom"

# @intent:test_case_realtime 実時間で自動実行し、二重のrunでタイマーが増えずにHALTまで到達することを検証します。
def test_controller_runs_to_halt_in_real_time(qapp):
    controller = ExecutionController(EngineAdapter(), QtScheduler())
    controller.compile_and_load("MVI A, 3\nLOOP: DCR A\nJNZ LOOP\nHLT")
    controller.set_cadence(controller.cadence.speed_max + controller.cadence.speed_min)

    assert controller.run()
    assert not controller.run()

    for _ in range(100):
        if controller.run_state == RunState.HALTED:
            break
        QTest.qWait(20)

    assert controller.run_state == RunState.HALTED
    assert controller.snapshot().instructions_executed == 8

def test_pause_stops_real_timer(qapp):
    controller = ExecutionController(EngineAdapter(), QtScheduler())
    controller.compile_and_load("LOOP: JMP LOOP")
    controller.set_cadence(controller.cadence.speed_max + controller.cadence.speed_min)
    controller.run()
    QTest.qWait(50)
    controller.pause()

    executed = controller.snapshot().instructions_executed
    QTest.qWait(100)
    assert controller.snapshot().instructions_executed == executed

class CountingQtScheduler(QtScheduler):
    def __init__(self):
        super().__init__()
        self.created = 0

    def schedule_repeating(self, interval_ms, callback):
        self.created += 1
        return super().schedule_repeating(interval_ms, callback)

# @intent:test_case_realtime 停止しないプログラムで二重にrunしても、一定時間内の実行数が1本のタイマー分に収まることを検証します。
def test_double_run_keeps_single_tick_rate(qapp):
    scheduler = CountingQtScheduler()
    controller = ExecutionController(EngineAdapter(), scheduler)
    controller.compile_and_load("LOOP: JMP LOOP")
    cadence = controller.cadence
    assert controller.set_cadence(cadence.speed_min + cadence.speed_max - 50) == 50

    assert controller.run()
    assert not controller.run()
    QTest.qWait(500)
    controller.pause()

    executed = controller.snapshot().instructions_executed
    assert scheduler.created == 1
    # 1本のタイマーなら約10回、2本なら約20回
    assert 3 <= executed <= 13
