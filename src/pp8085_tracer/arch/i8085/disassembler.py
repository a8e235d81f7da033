"""
8085逆アセンブラモジュール。

メモリ上のバイナリデータを解析し、8085アセンブリ言語のニーモニック形式に変換します。
"""
from typing import List, Tuple
from pp8085_tracer.transport.bus import Bus
from pp8085_tracer.arch.i8085.instructions import decode_opcode

# @intent:responsibility 指定されたメモリ範囲のバイナリデータを解析し、アドレスとニーモニックのリストを返します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    メモリ上のデータを読み取り、(アドレス, 16進ダンプ, ニーモニック) のタプルのリストを返します。
    デコードで発生したバスアクセスはログから破棄されます。
    """
    result = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr:
        if current_addr > 0xFFFF:
            break

        try:
            opcode = bus.peek(current_addr)
            operation = decode_opcode(opcode, bus, current_addr)

            hex_bytes = [f"{opcode:02X}"]
            for b in operation.operand_bytes:
                hex_bytes.append(f"{b:02X}")

            result.append((current_addr, " ".join(hex_bytes), operation.text))
            current_addr += operation.length

        except IndexError:
            # メモリ範囲外
            result.append((current_addr, "??", "ERR"))
            current_addr += 1

    # decode_opcodeはオペランド読み取りでbus.readを使うため、その記録を残さない
    bus.get_and_clear_activity_log()
    return result
