# pp8085_tracer/ui/qt_scheduler.py
"""
QTimerによるSchedulerの実装。
タイマーはQtのイベントループ上で発火するため、コールバックはGUIスレッドで逐次実行されます。
"""
import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer

from pp8085_tracer.common.errors import EngineFault
from pp8085_tracer.controller.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

FaultHandler = Callable[[EngineFault], None]


class QtTimerHandle(TimerHandle):
    def __init__(self, timer: QTimer):
        self._timer: Optional[QTimer] = timer

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()


# @intent:responsibility 繰り返しタイマーをQTimerで生成します。
# @intent:rationale タイマー内で発生したEngineFaultはQtのイベントループに到達する前にfault_handlerへ渡し、UIで通知できるようにします。
class QtScheduler(Scheduler):
    def __init__(self, parent: Optional[QObject] = None, fault_handler: Optional[FaultHandler] = None):
        self._parent = parent
        self._fault_handler = fault_handler

    def set_fault_handler(self, handler: Optional[FaultHandler]) -> None:
        self._fault_handler = handler

    def schedule_repeating(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        timer = QTimer(self._parent)
        timer.setInterval(interval_ms)
        handle = QtTimerHandle(timer)

        def on_timeout() -> None:
            # cancel()直後に既にキューに積まれていたtimeoutが届く場合がある
            if not handle.active:
                return
            try:
                callback()
            except EngineFault as e:
                if self._fault_handler is None:
                    raise
                self._fault_handler(e)

        timer.timeout.connect(on_timeout)
        timer.start()
        logger.debug("QTimer started (%d ms)", interval_ms)
        return handle
