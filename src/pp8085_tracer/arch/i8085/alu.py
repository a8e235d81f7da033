"""
8085 ALU (算術論理演算ユニット) およびフラグ操作ユーティリティ。

演算結果に基づいたフラグ（S, Z, AC, P, CY）の計算と更新を担当します。
"""
from pp8085_tracer.arch.i8085.state import I8085CpuState

# @intent:responsibility 指定されたバイト値のパリティ（ビット1の数が偶数ならTrue）を計算します。
def calculate_parity(val: int) -> bool:
    """8ビット値のパリティ（偶数ならTrue）を計算します。"""
    val &= 0xFF
    val ^= val >> 4
    val ^= val >> 2
    val ^= val >> 1
    return (val & 1) == 0

# @intent:responsibility S, Z, Pの3フラグを結果値から更新します。ほぼ全ての演算命令で共通です。
def update_flags_szp(state: I8085CpuState, result: int) -> None:
    res8 = result & 0xFF
    state.flag_s = (res8 & 0x80) != 0
    state.flag_z = res8 == 0
    state.flag_p = calculate_parity(res8)

# @intent:responsibility 8ビット加算を行い、全フラグを更新した結果を返します。
def add8(state: I8085CpuState, val1: int, val2: int, carry_in: int = 0) -> int:
    """ADD/ADC/ADI/ACI命令の演算本体。"""
    result = val1 + val2 + carry_in
    update_flags_szp(state, result)
    state.flag_ac = ((val1 & 0x0F) + (val2 & 0x0F) + carry_in) > 0x0F
    state.flag_cy = result > 0xFF
    return result & 0xFF

# @intent:responsibility 8ビット減算を行い、全フラグを更新した結果を返します。
# @intent:rationale 8085は減算を2の補数加算で実行するため、ACは補数加算時のビット3からのキャリーとして求めます。
#                  CYは借りの有無を表します。
def sub8(state: I8085CpuState, val1: int, val2: int, borrow_in: int = 0) -> int:
    """SUB/SBB/SUI/SBI/CMP/CPI命令の演算本体。"""
    result = val1 - val2 - borrow_in
    update_flags_szp(state, result)
    state.flag_ac = ((val1 & 0x0F) + (~val2 & 0x0F) + (1 - borrow_in)) > 0x0F
    state.flag_cy = result < 0
    return result & 0xFF

# @intent:responsibility 論理演算の結果に基づいてフラグを更新します。CYは常にクリアされます。
def update_flags_logic8(state: I8085CpuState, result: int, ac_flag: bool = False) -> None:
    """ANA/XRA/ORA命令のフラグを更新します。ANAのみACがセットされます。"""
    update_flags_szp(state, result)
    state.flag_ac = ac_flag
    state.flag_cy = False

# @intent:responsibility INR/DCRの演算を行い、CY以外のフラグを更新した結果を返します。
def inc_dec8(state: I8085CpuState, val: int, is_inc: bool) -> int:
    if is_inc:
        result = (val + 1) & 0xFF
        state.flag_ac = (val & 0x0F) == 0x0F
    else:
        result = (val - 1) & 0xFF
        state.flag_ac = (val & 0x0F) != 0x00
    update_flags_szp(state, result)
    return result

# @intent:responsibility RLC/RRC/RAL/RARの回転演算を行います。CY以外のフラグは変化しません。
def rotate8(state: I8085CpuState, val: int, op_type: int) -> int:
    """
    op_type: 0=RLC, 1=RRC, 2=RAL, 3=RAR
    """
    carry = 1 if state.flag_cy else 0
    if op_type == 0:
        carry = (val >> 7) & 1
        result = ((val << 1) | carry) & 0xFF
    elif op_type == 1:
        carry = val & 1
        result = ((val >> 1) | (carry << 7)) & 0xFF
    elif op_type == 2:
        result = ((val << 1) | carry) & 0xFF
        carry = (val >> 7) & 1
    else:
        result = ((val >> 1) | (carry << 7)) & 0xFF
        carry = val & 1
    state.flag_cy = carry == 1
    return result

# @intent:responsibility アキュムレータの10進補正（DAA）を行います。
def decimal_adjust(state: I8085CpuState) -> None:
    a = state.a
    correction = 0
    carry = state.flag_cy
    if (a & 0x0F) > 9 or state.flag_ac:
        correction |= 0x06
    if a > 0x99 or carry:
        correction |= 0x60
        carry = True
    result = a + correction
    state.flag_ac = ((a & 0x0F) + (correction & 0x0F)) > 0x0F
    state.a = result & 0xFF
    update_flags_szp(state, state.a)
    state.flag_cy = carry
