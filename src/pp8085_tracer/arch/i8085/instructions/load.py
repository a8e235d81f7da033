"""
8085 データ転送命令およびスタック操作命令の実装。
"""
from pp8085_tracer.arch.i8085.state import I8085CpuState
from pp8085_tracer.transport.bus import Bus
from pp8085_tracer.core.snapshot import Operation
from .base import (
    get_register_name, get_register_value, set_register_value,
    RP_CODES, PUSH_POP_CODES, set_rp_value, get_rp_value,
    read_word_operand, push_word, pop_word, operand_word
)

# --- Decoding Functions ---

# @intent:responsibility MOV r1,r2 形式の命令をデコードします。
def decode_mov(opcode: int, bus: Bus, pc: int) -> Operation:
    """MOV命令をデコードします。01DDDSSS"""
    dest_reg_name = get_register_name((opcode >> 3) & 0b111)
    src_reg_name = get_register_name(opcode & 0b111)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="MOV",
        operands=[dest_reg_name, src_reg_name],
        cycle_count=7 if "M" in (dest_reg_name, src_reg_name) else 4,
        length=1
    )

# @intent:responsibility MVI r,data 形式の命令をデコードします。
def decode_mvi(opcode: int, bus: Bus, pc: int) -> Operation:
    """MVI命令をデコードします。00DDD110"""
    reg_name = get_register_name((opcode >> 3) & 0b111)
    operand_n = bus.read((pc + 1) & 0xFFFF)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="MVI",
        operands=[reg_name, f"{operand_n:02X}H"],
        cycle_count=10 if reg_name == "M" else 7,
        length=2,
        operand_bytes=[operand_n]
    )

# @intent:responsibility LXI rp,data16 形式の命令をデコードします。
def decode_lxi(opcode: int, bus: Bus, pc: int) -> Operation:
    rp_name = RP_CODES[(opcode >> 4) & 0b11]
    low, high, word = read_word_operand(bus, pc)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="LXI",
        operands=[rp_name, f"{word:04X}H"],
        cycle_count=10,
        length=3,
        operand_bytes=[low, high]
    )

_DIRECT_MNEMONICS = {0x3A: ("LDA", 13), 0x32: ("STA", 13), 0x2A: ("LHLD", 16), 0x22: ("SHLD", 16)}

# @intent:responsibility LDA/STA/LHLD/SHLD (直接アドレッシング) をデコードします。
def decode_direct(opcode: int, bus: Bus, pc: int) -> Operation:
    mnemonic, cycles = _DIRECT_MNEMONICS[opcode]
    low, high, word = read_word_operand(bus, pc)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"{word:04X}H"],
        cycle_count=cycles,
        length=3,
        operand_bytes=[low, high]
    )

# @intent:responsibility LDAX/STAX (レジスタ間接) をデコードします。
def decode_indirect(opcode: int, bus: Bus, pc: int) -> Operation:
    mnemonic = "LDAX" if opcode & 0x08 else "STAX"
    rp_name = RP_CODES[(opcode >> 4) & 0b11]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, operands=[rp_name], cycle_count=7, length=1)

def decode_xchg(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="EB", mnemonic="XCHG", operands=[], cycle_count=4, length=1)

def decode_push_pop(opcode: int, bus: Bus, pc: int) -> Operation:
    """PUSH/POP命令をデコードします。"""
    reg_name = PUSH_POP_CODES[(opcode >> 4) & 0b11]
    is_push = (opcode & 0x0F) == 0x05
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="PUSH" if is_push else "POP",
        operands=[reg_name],
        cycle_count=12 if is_push else 10,
        length=1
    )

def decode_xthl(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="E3", mnemonic="XTHL", operands=[], cycle_count=16, length=1)

def decode_sphl(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="F9", mnemonic="SPHL", operands=[], cycle_count=6, length=1)

# --- Execution Functions ---

def execute_mov(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    dest, src = operation.operands
    set_register_value(state, bus, dest, get_register_value(state, bus, src))

def execute_mvi(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    set_register_value(state, bus, operation.operands[0], operation.operand_bytes[0])

def execute_lxi(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    set_rp_value(state, operation.operands[0], operand_word(operation))

# @intent:responsibility 直接アドレッシングのロード/ストアを実行します。
def execute_direct(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    addr = operand_word(operation)
    if operation.mnemonic == "LDA":
        state.a = bus.read(addr)
    elif operation.mnemonic == "STA":
        bus.write(addr, state.a)
    elif operation.mnemonic == "LHLD":
        state.l = bus.read(addr)
        state.h = bus.read((addr + 1) & 0xFFFF)
    elif operation.mnemonic == "SHLD":
        bus.write(addr, state.l)
        bus.write((addr + 1) & 0xFFFF, state.h)

def execute_indirect(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    addr = get_rp_value(state, operation.operands[0])
    if operation.mnemonic == "LDAX":
        state.a = bus.read(addr)
    else:
        bus.write(addr, state.a)

def execute_xchg(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    state.hl, state.de = state.de, state.hl

def execute_push_pop(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    reg_name = operation.operands[0]
    if operation.mnemonic == "PUSH":
        value = state.psw if reg_name == "PSW" else get_rp_value(state, reg_name)
        push_word(state, bus, value)
    else:
        value = pop_word(state, bus)
        if reg_name == "PSW":
            state.psw = value
        else:
            set_rp_value(state, reg_name, value)

# @intent:responsibility スタックトップとHLを交換します。
def execute_xthl(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    low = bus.read(state.sp)
    high = bus.read((state.sp + 1) & 0xFFFF)
    bus.write(state.sp, state.l)
    bus.write((state.sp + 1) & 0xFFFF, state.h)
    state.l = low
    state.h = high

def execute_sphl(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    state.sp = state.hl
