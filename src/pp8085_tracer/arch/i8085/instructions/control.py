"""
8085 制御命令（分岐、サブルーチン、I/O、マシン制御）の実装。
"""
from pp8085_tracer.arch.i8085.state import I8085CpuState
from pp8085_tracer.transport.bus import Bus
from pp8085_tracer.core.snapshot import Operation
from .base import CONDITION_CODES, check_condition, read_word_operand, push_word, pop_word, operand_word

# --- Decoding Functions ---

def decode_nop(opcode: int, bus: Bus, pc: int) -> Operation:
    """NOP命令をデコードします。"""
    return Operation(opcode_hex="00", mnemonic="NOP", operands=[], cycle_count=4, length=1)

# @intent:responsibility オペコード0x76 (HLT)をデコードします。
def decode_hlt(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="76", mnemonic="HLT", operands=[], cycle_count=5, length=1)

# @intent:responsibility JMP/CALL および条件付きのJcc/Cccをデコードします。
def decode_jump_call(opcode: int, bus: Bus, pc: int) -> Operation:
    low, high, word = read_word_operand(bus, pc)
    if opcode == 0xC3:
        mnemonic, cycles = "JMP", 10
    elif opcode == 0xCD:
        mnemonic, cycles = "CALL", 18
    elif (opcode & 0x07) == 0x02:
        mnemonic, cycles = "J" + CONDITION_CODES[(opcode >> 3) & 0b111], 10
    else:
        mnemonic, cycles = "C" + CONDITION_CODES[(opcode >> 3) & 0b111], 18
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"{word:04X}H"],
        cycle_count=cycles,
        length=3,
        operand_bytes=[low, high]
    )

# @intent:responsibility RET および条件付きのRccをデコードします。
def decode_return(opcode: int, bus: Bus, pc: int) -> Operation:
    if opcode == 0xC9:
        return Operation(opcode_hex="C9", mnemonic="RET", operands=[], cycle_count=10, length=1)
    condition = CONDITION_CODES[(opcode >> 3) & 0b111]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic="R" + condition, operands=[], cycle_count=12, length=1)

def decode_rst(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="RST",
        operands=[str((opcode >> 3) & 0b111)],
        cycle_count=12,
        length=1
    )

def decode_pchl(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="E9", mnemonic="PCHL", operands=[], cycle_count=6, length=1)

# @intent:responsibility IN/OUT port 命令をデコードします。
def decode_in_out(opcode: int, bus: Bus, pc: int) -> Operation:
    port = bus.read((pc + 1) & 0xFFFF)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="IN" if opcode == 0xDB else "OUT",
        operands=[f"{port:02X}H"],
        cycle_count=10,
        length=2,
        operand_bytes=[port]
    )

_MACHINE_CONTROL = {0xFB: "EI", 0xF3: "DI", 0x20: "RIM", 0x30: "SIM"}

def decode_machine_control(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=_MACHINE_CONTROL[opcode], operands=[], cycle_count=4, length=1)

# --- Execution Functions ---

def execute_nop(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    pass

# @intent:responsibility CPUをHALT状態にします。以降のstepはリセットされるまで何も実行しません。
def execute_hlt(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    state.halted = True

# @intent:pre-condition PCは既に次の命令（戻りアドレス）を指している必要があります。
def execute_jump_call(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    mnemonic = operation.mnemonic
    target = operand_word(operation)
    if mnemonic == "JMP":
        state.pc = target
    elif mnemonic == "CALL":
        push_word(state, bus, state.pc)
        state.pc = target
    elif mnemonic.startswith("J"):
        if check_condition(state, mnemonic[1:]):
            state.pc = target
    elif check_condition(state, mnemonic[1:]):
        push_word(state, bus, state.pc)
        state.pc = target

def execute_return(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    if operation.mnemonic == "RET" or check_condition(state, operation.mnemonic[1:]):
        state.pc = pop_word(state, bus)

def execute_rst(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    push_word(state, bus, state.pc)
    state.pc = int(operation.operands[0]) * 8

def execute_pchl(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = state.hl

def execute_in_out(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    port = operation.operand_bytes[0]
    if operation.mnemonic == "IN":
        state.a = bus.read_io(port)
    else:
        bus.write_io(port, state.a)

# @intent:responsibility EI/DI/RIM/SIM を実行します。
# @intent:rationale シリアルI/O (SID/SOD) と割り込み入力は扱わないため、RIM/SIMはマスクとIEビットのみを反映します。
def execute_machine_control(state: I8085CpuState, bus: Bus, operation: Operation) -> None:
    mnemonic = operation.mnemonic
    if mnemonic == "EI":
        state.interrupts_enabled = True
    elif mnemonic == "DI":
        state.interrupts_enabled = False
    elif mnemonic == "RIM":
        state.a = (0x08 if state.interrupts_enabled else 0x00) | (state.interrupt_mask & 0x07)
    elif mnemonic == "SIM":
        if state.a & 0x08:  # MSE (Mask Set Enable)
            state.interrupt_mask = state.a & 0x07
