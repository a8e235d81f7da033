# pp8085_tracer/config/models.py
"""
エミュレータ構成のデータモデル。
"""
from dataclasses import dataclass, field
from typing import List

from pp8085_tracer.controller.cadence import CadenceConfig

DEFAULT_MEMORY_SIZE = 0x2000
MIN_MEMORY_SIZE = 0x100
MAX_MEMORY_SIZE = 0x10000
THEMES = ("light", "dark")


# @intent:responsibility メモリ容量、実行速度、起動時のI/Oポート、テーマを保持します。
@dataclass
class EmulatorConfig:
    memory_size: int = DEFAULT_MEMORY_SIZE
    cadence: CadenceConfig = field(default_factory=CadenceConfig)
    io_ports: List[int] = field(default_factory=list)
    theme: str = "light"

    # @intent:post-condition 不正な値があればValueErrorを送出します。
    def validate(self) -> None:
        size = self.memory_size
        if not MIN_MEMORY_SIZE <= size <= MAX_MEMORY_SIZE or size & (size - 1):
            raise ValueError(
                f"memory_size must be a power of two between {MIN_MEMORY_SIZE} and {MAX_MEMORY_SIZE} (got {size})"
            )
        for port in self.io_ports:
            if not 0 <= port <= 0xFF:
                raise ValueError(f"I/O port {port} is outside 0x00-0xFF")
        if self.theme not in THEMES:
            raise ValueError(f"theme must be one of {', '.join(THEMES)} (got {self.theme!r})")
