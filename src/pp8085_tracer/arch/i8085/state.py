# pp8085_tracer/arch/i8085/state.py
"""
8085 CPU固有の状態定義。

このモジュールは、8085 CPUのレジスタ、フラグ、およびその他の状態を保持するデータ構造を定義します。
"""
from dataclasses import dataclass

from pp8085_tracer.core.state import CpuState

# 8085フラグビットマスク
# @intent:constant Fレジスタ内の各フラグビットの位置を定義します。
# 7  6  5  4  3  2  1  0
# S  Z  -  AC -  P  -  CY
S_FLAG = 0b10000000   # Sign (符号)
Z_FLAG = 0b01000000   # Zero (ゼロ)
AC_FLAG = 0b00010000  # Auxiliary Carry (補助キャリー)
P_FLAG = 0b00000100   # Parity (パリティ)
CY_FLAG = 0b00000001  # Carry (キャリー)


# @intent:responsibility 8085 CPUの全てのレジスタとフラグの状態を保持します。
@dataclass
class I8085CpuState(CpuState):
    """
    8085 CPUのレジスタ状態を保持するデータクラス。
    CpuStateを拡張し、8085固有のレジスタを含みます。
    """
    a: int = 0x00
    f: int = 0x00  # Flag register (Process Status Word の下位バイト)
    b: int = 0x00
    c: int = 0x00
    d: int = 0x00
    e: int = 0x00
    h: int = 0x00
    l: int = 0x00
    ir: int = 0x00  # Instruction Register (最後にフェッチしたオペコード)

    interrupts_enabled: bool = False
    interrupt_mask: int = 0x07  # RIM/SIMで扱うM7.5, M6.5, M5.5 (リセット時は全てマスク)

    # @intent:accessor Fレジスタの各フラグビットにアクセスするためのプロパティを提供します。

    def _set_flag(self, mask: int, value: bool) -> None:
        if value:
            self.f |= mask
        else:
            self.f &= ~mask & 0xFF

    @property
    def flag_s(self) -> bool:
        return (self.f & S_FLAG) != 0

    @flag_s.setter
    def flag_s(self, value: bool) -> None:
        self._set_flag(S_FLAG, value)

    @property
    def flag_z(self) -> bool:
        return (self.f & Z_FLAG) != 0

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        self._set_flag(Z_FLAG, value)

    @property
    def flag_ac(self) -> bool:
        return (self.f & AC_FLAG) != 0

    @flag_ac.setter
    def flag_ac(self, value: bool) -> None:
        self._set_flag(AC_FLAG, value)

    @property
    def flag_p(self) -> bool:
        return (self.f & P_FLAG) != 0

    @flag_p.setter
    def flag_p(self, value: bool) -> None:
        self._set_flag(P_FLAG, value)

    @property
    def flag_cy(self) -> bool:
        return (self.f & CY_FLAG) != 0

    @flag_cy.setter
    def flag_cy(self, value: bool) -> None:
        self._set_flag(CY_FLAG, value)

    # 16-bit register pairs
    @property
    def psw(self) -> int:
        return (self.a << 8) | self.f

    @psw.setter
    def psw(self, value: int) -> None:
        self.a = (value >> 8) & 0xFF
        self.f = value & 0xFF

    @property
    def bc(self) -> int:
        return (self.b << 8) | self.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.b = (value >> 8) & 0xFF
        self.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.d << 8) | self.e

    @de.setter
    def de(self, value: int) -> None:
        self.d = (value >> 8) & 0xFF
        self.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.h << 8) | self.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.h = (value >> 8) & 0xFF
        self.l = value & 0xFF
