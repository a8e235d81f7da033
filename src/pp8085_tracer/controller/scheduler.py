# pp8085_tracer/controller/scheduler.py
"""
繰り返しタスクのスケジューラ抽象。

ExecutionControllerはこのインターフェースのみに依存し、Qtのイベントループには直接触れません。
"""
from abc import ABC, abstractmethod
from typing import Callable


# @intent:responsibility 1本の繰り返しタイマーを表すハンドル。
class TimerHandle(ABC):
    # @intent:post-condition cancel()の戻り後、コールバックは二度と呼ばれません。複数回呼んでも安全です。
    @abstractmethod
    def cancel(self) -> None:
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        pass


class Scheduler(ABC):
    # @intent:responsibility interval_msごとにcallbackを呼び出すタイマーを開始し、そのハンドルを返します。
    @abstractmethod
    def schedule_repeating(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        pass
