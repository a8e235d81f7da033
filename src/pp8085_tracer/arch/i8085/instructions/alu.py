"""
8085 算術論理演算 (ALU) 命令の実装。
"""
from pp8085_tracer.arch.i8085.state import I8085CpuState
from pp8085_tracer.transport.bus import Bus
from pp8085_tracer.core.snapshot import Operation
from pp8085_tracer.arch.i8085.alu import (
    add8, sub8, update_flags_logic8, inc_dec8, rotate8, decimal_adjust
)
from .base import (
    get_register_name, get_register_value, set_register_value,
    RP_CODES, get_rp_value, set_rp_value
)

# 10xxxSSS のビット5-3と即値命令 11xxx110 のビット5-3は同じ演算を表す
ALU_OPS_R = ["ADD", "ADC", "SUB", "SBB", "ANA", "XRA", "ORA", "CMP"]
ALU_OPS_IMM = ["ADI", "ACI", "SUI", "SBI", "ANI", "XRI", "ORI", "CPI"]

ACCUMULATOR_OPS = {
    0x07: "RLC", 0x0F: "RRC", 0x17: "RAL", 0x1F: "RAR",
    0x27: "DAA", 0x2F: "CMA", 0x37: "STC", 0x3F: "CMC"
}

# --- Decoding Functions ---

# @intent:responsibility ADD/ADC/SUB/SBB/ANA/XRA/ORA/CMP r 形式の命令をデコードします。
def decode_alu_r(opcode: int, bus: Bus, pc: int) -> Operation:
    src_reg_name = get_register_name(opcode & 0b111)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=ALU_OPS_R[(opcode >> 3) & 0b111],
        operands=[src_reg_name],
        cycle_count=7 if src_reg_name == "M" else 4,
        length=1
    )

# @intent:responsibility ADI/ACI/SUI/SBI/ANI/XRI/ORI/CPI data 形式の命令をデコードします。
def decode_alu_imm(opcode: int, bus: Bus, pc: int) -> Operation:
    operand_n = bus.read((pc + 1) & 0xFFFF)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=ALU_OPS_IMM[(opcode >> 3) & 0b111],
        operands=[f"{operand_n:02X}H"],
        cycle_count=7,
        length=2,
        operand_bytes=[operand_n]
    )

# @intent:responsibility INR r / DCR r 形式の命令をデコードします。
def decode_inr_dcr(opcode: int, bus: Bus, pc: int) -> Operation:
    reg_name = get_register_name((opcode >> 3) & 0b111)
    is_inc = (opcode & 1) == 0
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="INR" if is_inc else "DCR",
        operands=[reg_name],
        cycle_count=10 if reg_name == "M" else 4,
        length=1
    )

def decode_inx_dcx(opcode: int, bus: Bus, pc: int) -> Operation:
    rp_name = RP_CODES[(opcode >> 4) & 0b11]
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="DCX" if opcode & 0x08 else "INX",
        operands=[rp_name],
        cycle_count=6,
        length=1
    )

def decode_dad(opcode: int, bus: Bus, pc: int) -> Operation:
    rp_name = RP_CODES[(opcode >> 4) & 0b11]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic="DAD", operands=[rp_name], cycle_count=10, length=1)

def decode_accumulator(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=ACCUMULATOR_OPS[opcode], operands=[], cycle_count=4, length=1)

# --- Execution Functions ---

# @intent:responsibility アキュムレータと値に対して8種類のALU演算のいずれかを適用します。
# @intent:rationale レジスタ版と即値版で同じ演算本体を共有し、フラグ計算の食い違いを防ぎます。
def _apply_alu(state: I8085CpuState, op_index: int, value: int) -> None:
    carry = 1 if state.flag_cy else 0
    if op_index == 0:
        state.a = add8(state, state.a, value)
    elif op_index == 1:
        state.a = add8(state, state.a, value, carry)
    elif op_index == 2:
        state.a = sub8(state, state.a, value)
    elif op_index == 3:
        state.a = sub8(state, state.a, value, carry)
    elif op_index == 4:
        result = state.a & value
        update_flags_logic8(state, result, ac_flag=True)
        state.a = result
    elif op_index == 5:
        result = state.a ^ value
        update_flags_logic8(state, result)
        state.a = result
    elif op_index == 6:
        result = state.a | value
        update_flags_logic8(state, result)
        state.a = result
    else:
        # CMP: 結果は破棄し、フラグのみ更新
        sub8(state, state.a, value)

def execute_alu_r(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    value = get_register_value(state, bus, operation.operands[0])
    _apply_alu(state, ALU_OPS_R.index(operation.mnemonic), value)

def execute_alu_imm(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    _apply_alu(state, ALU_OPS_IMM.index(operation.mnemonic), operation.operand_bytes[0])

def execute_inr_dcr(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    reg_name = operation.operands[0]
    value = get_register_value(state, bus, reg_name)
    set_register_value(state, bus, reg_name, inc_dec8(state, value, operation.mnemonic == "INR"))

# @intent:responsibility 16bitのインクリメント/デクリメント。フラグは変化しません。
def execute_inx_dcx(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    rp_name = operation.operands[0]
    delta = 1 if operation.mnemonic == "INX" else -1
    set_rp_value(state, rp_name, get_rp_value(state, rp_name) + delta)

# @intent:responsibility HL += rp。CYのみ更新します。
def execute_dad(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    result = state.hl + get_rp_value(state, operation.operands[0])
    state.flag_cy = result > 0xFFFF
    state.hl = result & 0xFFFF

def execute_accumulator(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    mnemonic = operation.mnemonic
    if mnemonic in ("RLC", "RRC", "RAL", "RAR"):
        state.a = rotate8(state, state.a, ["RLC", "RRC", "RAL", "RAR"].index(mnemonic))
    elif mnemonic == "DAA":
        decimal_adjust(state)
    elif mnemonic == "CMA":
        state.a = ~state.a & 0xFF
    elif mnemonic == "STC":
        state.flag_cy = True
    elif mnemonic == "CMC":
        state.flag_cy = not state.flag_cy
