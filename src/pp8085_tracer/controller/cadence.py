# pp8085_tracer/controller/cadence.py
"""
実行速度（ケイデンス）の計算。

UIの速度スライダー値を自動ステップ間隔（ミリ秒）に変換します。
速度が大きいほど間隔は短くなります。
"""
from dataclasses import dataclass

# @intent:responsibility 自動ステップ間隔の範囲と、速度値から間隔への変換規則を保持します。
@dataclass(frozen=True)
class CadenceConfig:
    initial_interval_ms: int = 500
    min_interval_ms: int = 20
    max_interval_ms: int = 3000
    speed_min: int = 200
    speed_max: int = 3000

    def __post_init__(self):
        if not 0 < self.min_interval_ms <= self.initial_interval_ms <= self.max_interval_ms:
            raise ValueError(
                "Cadence bounds must satisfy 0 < min_interval_ms <= initial_interval_ms <= max_interval_ms "
                f"(got {self.min_interval_ms}, {self.initial_interval_ms}, {self.max_interval_ms})"
            )
        if self.speed_min >= self.speed_max:
            raise ValueError(f"speed_min ({self.speed_min}) must be less than speed_max ({self.speed_max})")

    def clamp(self, interval_ms: int) -> int:
        return max(self.min_interval_ms, min(self.max_interval_ms, int(interval_ms)))

    # @intent:responsibility 速度値を間隔に変換します。結果は常に[min_interval_ms, max_interval_ms]に収まります。
    def interval_for(self, speed: int) -> int:
        return self.clamp((self.speed_min + self.speed_max) - speed)

    # @intent:responsibility interval_forの逆変換。スライダーの初期位置を決めるために使用します。
    def speed_for(self, interval_ms: int) -> int:
        speed = (self.speed_min + self.speed_max) - interval_ms
        return max(self.speed_min, min(self.speed_max, speed))
