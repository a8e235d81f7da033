"""
8085命令セット実装パッケージ。
"""
from pp8085_tracer.transport.bus import Bus
from pp8085_tracer.core.snapshot import Operation
from pp8085_tracer.arch.i8085.state import I8085CpuState
from .maps import DECODE_MAP, EXECUTE_MAP

# @intent:responsibility 与えられたオペコードを8085の命令としてデコードします。
# @intent:pre-condition `pc`はデコードするオペコードの先頭アドレスを指している必要があります。
def decode_opcode(opcode: int, bus: Bus, pc: int) -> Operation:
    """
    8085のオペコードをデコードし、Operationオブジェクトを返します。
    未定義のオペコードの場合は1バイトの"UNKNOWN"（NOP相当）を返します。
    """
    decoder = DECODE_MAP.get(opcode)
    if decoder:
        return decoder(opcode, bus, pc)
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic="UNKNOWN", operands=[f"{opcode:02X}H"], cycle_count=4, length=1)

# @intent:responsibility デコードされた8085命令を実行し、CPUの状態を変更します。
def execute_instruction(operation: Operation, state: I8085CpuState, bus: Bus) -> None:
    executor = EXECUTE_MAP.get(int(operation.opcode_hex, 16))
    if executor:
        executor(state, bus, operation)
