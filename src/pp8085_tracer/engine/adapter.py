# pp8085_tracer/engine/adapter.py
"""
Engine Adapter

アセンブラ、バス、8085 CPUを束ね、実行コントローラが必要とする最小限の操作のみを公開します。
エンジン内部の例外はここでエラー分類（ParseError / EngineFault）に写像されます。
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

from pp8085_tracer.arch.i8085.state import I8085CpuState
from pp8085_tracer.common.errors import ParseError, EngineFault
from pp8085_tracer.common.types import IoPortMap, ListingLine, RegisterLayoutInfo, SymbolMap
from pp8085_tracer.config.builder import SystemBuilder
from pp8085_tracer.config.models import EmulatorConfig
from pp8085_tracer.core.snapshot import Snapshot
from pp8085_tracer.loader.assembler import I8085Assembler

logger = logging.getLogger(__name__)


# @intent:responsibility コンパイル結果を不変に保持します。dataは0番地から配置されるバイト列です。
@dataclass(frozen=True)
class ProgramImage:
    data: bytes
    symbols: SymbolMap = field(default_factory=dict)
    listing: Tuple[ListingLine, ...] = ()

    def __len__(self) -> int:
        return len(self.data)


# @intent:responsibility ある時点のレジスタとフラグを不変に記録します。
@dataclass(frozen=True)
class RegisterSnapshot:
    a: int = 0
    b: int = 0
    c: int = 0
    d: int = 0
    e: int = 0
    h: int = 0
    l: int = 0
    f: int = 0
    sp: int = 0
    pc: int = 0
    ir: int = 0
    flag_s: bool = False
    flag_z: bool = False
    flag_ac: bool = False
    flag_p: bool = False
    flag_cy: bool = False
    halted: bool = False

    @classmethod
    def from_state(cls, state: I8085CpuState) -> "RegisterSnapshot":
        return cls(
            a=state.a, b=state.b, c=state.c, d=state.d, e=state.e, h=state.h, l=state.l, f=state.f,
            sp=state.sp, pc=state.pc, ir=state.ir,
            flag_s=state.flag_s, flag_z=state.flag_z, flag_ac=state.flag_ac,
            flag_p=state.flag_p, flag_cy=state.flag_cy,
            halted=state.halted,
        )

    # @intent:responsibility レジスタ名から値への辞書を返します。レジスタビューが名前で値を引くために使用します。
    def as_register_map(self) -> Dict[str, int]:
        return {
            "A": self.a, "F": self.f, "B": self.b, "C": self.c, "D": self.d, "E": self.e,
            "H": self.h, "L": self.l, "SP": self.sp, "PC": self.pc, "IR": self.ir,
        }

    def as_flag_map(self) -> Dict[str, bool]:
        return {"S": self.flag_s, "Z": self.flag_z, "AC": self.flag_ac, "P": self.flag_p, "CY": self.flag_cy}


# @intent:responsibility エンジンに対する固定の操作セットを提供します。判断ロジックは持ちません。
class EngineAdapter:
    """
    8085エンジンへの狭いインターフェース。全ての呼び出しは同期的で、有限時間で戻ります。
    """
    def __init__(self, config: Optional[EmulatorConfig] = None):
        config = config or EmulatorConfig()
        self._cpu, self._bus = SystemBuilder().build_system(config)
        self._assembler = I8085Assembler()

    @property
    def memory_capacity(self) -> int:
        return self._bus.capacity()

    # @intent:responsibility ソースをアセンブルしてProgramImageを返します。エンジンの状態は変更しません。
    # @intent:post-condition 失敗時はParseErrorを送出します。メモリ容量を超えるイメージも失敗として扱います。
    def compile(self, source: str) -> ProgramImage:
        symbols, binary, listing = self._assembler.assemble_text(source)
        capacity = self.memory_capacity

        for entry in listing:
            if entry.data and entry.address + len(entry.data) > capacity:
                raise ParseError(
                    f"Program does not fit in memory: {entry.address + len(entry.data)} bytes needed, "
                    f"{capacity} available",
                    entry.line_number,
                )

        size = max((addr for addr, _ in binary), default=-1) + 1
        data = bytearray(size)
        for addr, byte in binary:
            data[addr] = byte
        return ProgramImage(data=bytes(data), symbols=dict(symbols), listing=tuple(listing))

    # @intent:responsibility メモリをゼロクリアしてイメージを0番地から書き込みます。レジスタには触れません。
    def load(self, image: ProgramImage) -> None:
        try:
            self._bus.load_image(image.data)
        except (IndexError, ValueError) as e:
            raise EngineFault(f"Failed to load program image: {e}") from e
        self._cpu.set_symbol_map(image.symbols)
        logger.debug("Loaded %d bytes, %d symbols", len(image.data), len(image.symbols))

    def reset(self) -> None:
        self._cpu.reset()

    # @intent:responsibility 1命令を実行し、その命令のSnapshotを返します。
    # @intent:rationale メモリ範囲外アクセスなどは利用者が回復できる失敗ではないため、EngineFaultとして伝播させます。
    def step_once(self) -> Snapshot:
        pc = self._cpu.get_state().pc
        try:
            return self._cpu.step()
        except (IndexError, ValueError) as e:
            raise EngineFault(f"Engine failure while executing at PC {pc:#06x}: {e}") from e

    def is_halted(self) -> bool:
        return self._cpu.is_halted()

    def registers(self) -> RegisterSnapshot:
        return RegisterSnapshot.from_state(self._cpu.get_state())

    def register_layout(self) -> List[RegisterLayoutInfo]:
        return self._cpu.get_register_layout()

    # @intent:responsibility メモリ内容をログを残さずに読み出します。容量を超える部分は切り詰められます。
    def read_memory(self, start: int, length: int) -> bytes:
        start = max(0, start)
        end = min(self.memory_capacity, start + max(0, length))
        return bytes(self._bus.peek(addr) for addr in range(start, end))

    def disassemble(self, start: int, length: int) -> List[Tuple[int, str, str]]:
        return self._cpu.disassemble(start, length)

    def get_io_ports(self) -> IoPortMap:
        return self._bus.io_ports.ports()

    def write_io_port(self, address: int, data: int) -> bool:
        return self._bus.io_ports.write(address, data)

    def add_io_port(self, address: int) -> bool:
        return self._bus.io_ports.add(address)

    def remove_io_port(self, address: int) -> bool:
        return self._bus.io_ports.remove(address)
