"""
8085 命令マッピング定義。
各命令モジュールから関数をインポートし、オペコードと関数の対応表を構築します。
"""
from .alu import (
    decode_alu_r, decode_alu_imm, decode_inr_dcr, decode_inx_dcx, decode_dad, decode_accumulator,
    execute_alu_r, execute_alu_imm, execute_inr_dcr, execute_inx_dcx, execute_dad, execute_accumulator,
    ACCUMULATOR_OPS
)
from .load import (
    decode_mov, decode_mvi, decode_lxi, decode_direct, decode_indirect, decode_xchg,
    decode_push_pop, decode_xthl, decode_sphl,
    execute_mov, execute_mvi, execute_lxi, execute_direct, execute_indirect, execute_xchg,
    execute_push_pop, execute_xthl, execute_sphl
)
from .control import (
    decode_nop, decode_hlt, decode_jump_call, decode_return, decode_rst, decode_pchl,
    decode_in_out, decode_machine_control,
    execute_nop, execute_hlt, execute_jump_call, execute_return, execute_rst, execute_pchl,
    execute_in_out, execute_machine_control
)

# (decoder, executor) の組をオペコードごとに登録する
_TABLE = {
    0x00: (decode_nop, execute_nop),
    0x76: (decode_hlt, execute_hlt),
    0x22: (decode_direct, execute_direct), # SHLD
    0x2A: (decode_direct, execute_direct), # LHLD
    0x32: (decode_direct, execute_direct), # STA
    0x3A: (decode_direct, execute_direct), # LDA
    0x02: (decode_indirect, execute_indirect), # STAX B
    0x12: (decode_indirect, execute_indirect), # STAX D
    0x0A: (decode_indirect, execute_indirect), # LDAX B
    0x1A: (decode_indirect, execute_indirect), # LDAX D
    0xEB: (decode_xchg, execute_xchg),
    0xE3: (decode_xthl, execute_xthl),
    0xF9: (decode_sphl, execute_sphl),
    0xE9: (decode_pchl, execute_pchl),
    0xC3: (decode_jump_call, execute_jump_call), # JMP
    0xCD: (decode_jump_call, execute_jump_call), # CALL
    0xC9: (decode_return, execute_return), # RET
    0xDB: (decode_in_out, execute_in_out), # IN
    0xD3: (decode_in_out, execute_in_out), # OUT
    0xFB: (decode_machine_control, execute_machine_control), # EI
    0xF3: (decode_machine_control, execute_machine_control), # DI
    0x20: (decode_machine_control, execute_machine_control), # RIM
    0x30: (decode_machine_control, execute_machine_control), # SIM
    **{op: (decode_accumulator, execute_accumulator) for op in ACCUMULATOR_OPS},
    **{op: (decode_mov, execute_mov) for op in range(0x40, 0x80) if op != 0x76}, # MOV r1,r2
    **{op: (decode_mvi, execute_mvi) for op in range(0x06, 0x40, 0x08)}, # MVI r
    **{op: (decode_lxi, execute_lxi) for op in range(0x01, 0x40, 0x10)}, # LXI rp
    **{op: (decode_inx_dcx, execute_inx_dcx) for op in range(0x03, 0x40, 0x10)}, # INX rp
    **{op: (decode_inx_dcx, execute_inx_dcx) for op in range(0x0B, 0x40, 0x10)}, # DCX rp
    **{op: (decode_dad, execute_dad) for op in range(0x09, 0x40, 0x10)}, # DAD rp
    **{op: (decode_inr_dcr, execute_inr_dcr) for op in range(0x04, 0x40, 0x08)}, # INR r
    **{op: (decode_inr_dcr, execute_inr_dcr) for op in range(0x05, 0x40, 0x08)}, # DCR r
    **{op: (decode_alu_r, execute_alu_r) for op in range(0x80, 0xC0)}, # ADD..CMP r
    **{op: (decode_alu_imm, execute_alu_imm) for op in range(0xC6, 0x100, 0x08)}, # ADI..CPI
    **{op: (decode_jump_call, execute_jump_call) for op in range(0xC2, 0x100, 0x08)}, # Jcc
    **{op: (decode_jump_call, execute_jump_call) for op in range(0xC4, 0x100, 0x08)}, # Ccc
    **{op: (decode_return, execute_return) for op in range(0xC0, 0x100, 0x08)}, # Rcc
    **{op: (decode_rst, execute_rst) for op in range(0xC7, 0x100, 0x08)}, # RST n
    **{op: (decode_push_pop, execute_push_pop) for op in range(0xC5, 0x100, 0x10)}, # PUSH
    **{op: (decode_push_pop, execute_push_pop) for op in range(0xC1, 0x100, 0x10)}, # POP
}

DECODE_MAP = {op: pair[0] for op, pair in _TABLE.items()}
EXECUTE_MAP = {op: pair[1] for op, pair in _TABLE.items()}
