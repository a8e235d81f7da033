"""
8085命令セット実装のための共通ヘルパー関数と定数。
"""
from pp8085_tracer.arch.i8085.state import I8085CpuState
from pp8085_tracer.transport.bus import Bus

# Helper functions for register mapping
# +--+-----+
# |B | 000 |
# |C | 001 |
# |D | 010 |
# |E | 011 |
# |H | 100 |
# |L | 101 |
# |M | 110 |
# |A | 111 |
# +--+-----+
REGISTER_CODES = {
    0b000: "B", 0b001: "C", 0b010: "D", 0b011: "E",
    0b100: "H", 0b101: "L", 0b110: "M", 0b111: "A"
}

# LXI/INX/DCX/DAD で使用されるレジスタペア
RP_CODES = {0b00: "B", 0b01: "D", 0b10: "H", 0b11: "SP"}

# PUSH/POP で使用されるレジスタペア
PUSH_POP_CODES = {0b00: "B", 0b01: "D", 0b10: "H", 0b11: "PSW"}

# 条件コード (Jcc/Ccc/Rcc のビット5-3)
CONDITION_CODES = {
    0b000: "NZ", 0b001: "Z", 0b010: "NC", 0b011: "C",
    0b100: "PO", 0b101: "PE", 0b110: "P", 0b111: "M"
}

# @intent:utility_function 指定されたコードに対応するレジスタ名を返します。
def get_register_name(code: int) -> str:
    return REGISTER_CODES.get(code, "UNKNOWN_REG")

# @intent:utility_function レジスタ名（またはM）に基づいて現在の値を取得します。
def get_register_value(state: I8085CpuState, bus: Bus, reg_name: str) -> int:
    if reg_name == "M":
        return bus.read(state.hl)
    return getattr(state, reg_name.lower())

# @intent:utility_function レジスタ名（またはM）に値を設定します。
def set_register_value(state: I8085CpuState, bus: Bus, reg_name: str, value: int) -> None:
    if reg_name == "M":
        bus.write(state.hl, value & 0xFF)
    else:
        setattr(state, reg_name.lower(), value & 0xFF)

def get_rp_value(state: I8085CpuState, rp_name: str) -> int:
    return {"B": state.bc, "D": state.de, "H": state.hl, "SP": state.sp}[rp_name]

def set_rp_value(state: I8085CpuState, rp_name: str, value: int) -> None:
    value &= 0xFFFF
    if rp_name == "B":
        state.bc = value
    elif rp_name == "D":
        state.de = value
    elif rp_name == "H":
        state.hl = value
    else:
        state.sp = value

# @intent:utility_function 条件コードがCPUの現在のフラグ状態で成立するかを判定します。
def check_condition(state: I8085CpuState, condition: str) -> bool:
    return {
        "NZ": not state.flag_z,
        "Z": state.flag_z,
        "NC": not state.flag_cy,
        "C": state.flag_cy,
        "PO": not state.flag_p,
        "PE": state.flag_p,
        "P": not state.flag_s,
        "M": state.flag_s,
    }[condition]

# @intent:utility_function オペコードに続く2バイト（リトルエンディアン）を読み込みます。
def read_word_operand(bus: Bus, pc: int):
    low = bus.read((pc + 1) & 0xFFFF)
    high = bus.read((pc + 2) & 0xFFFF)
    return low, high, (high << 8) | low

def push_word(state: I8085CpuState, bus: Bus, value: int) -> None:
    state.sp = (state.sp - 1) & 0xFFFF
    bus.write(state.sp, (value >> 8) & 0xFF)
    state.sp = (state.sp - 1) & 0xFFFF
    bus.write(state.sp, value & 0xFF)

def pop_word(state: I8085CpuState, bus: Bus) -> int:
    low = bus.read(state.sp)
    state.sp = (state.sp + 1) & 0xFFFF
    high = bus.read(state.sp)
    state.sp = (state.sp + 1) & 0xFFFF
    return (high << 8) | low

def operand_word(operation) -> int:
    return (operation.operand_bytes[1] << 8) | operation.operand_bytes[0]
