# pp8085_tracer/loader/assembler.py
"""
8085アセンブラ実装。
Engine Adapterのcompileから利用され、ソーステキストをバイナリイメージとリスティングに変換します。
"""
import re
from abc import ABC, abstractmethod
from typing import Dict, Tuple, List, Optional
from pp8085_tracer.common.types import SymbolMap, ListingLine
from pp8085_tracer.common.errors import ParseError

AssemblyResult = Tuple[SymbolMap, List[Tuple[int, int]], List[ListingLine]]

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# @intent:responsibility アセンブラの共通インターフェースと字句解析ヘルパーを定義します。
class BaseAssembler(ABC):
    @abstractmethod
    def assemble(self, lines: List[str]) -> AssemblyResult:
        """
        アセンブリソースを行単位で解析し、シンボルマップ、バイナリデータ、リスティングを返します。
        """
        pass

    def assemble_text(self, text: str) -> AssemblyResult:
        return self.assemble(text.splitlines())

    def _parse_line(self, line: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        line = _strip_comment(line).strip()
        if not line:
            return None, None, None

        label = None
        match = re.match(r'^([A-Za-z_][A-Za-z0-9_]*)\s*:(.*)$', line)
        if match:
            label = match.group(1).upper()
            line = match.group(2).strip()

        if not line:
            return label, None, None

        parts = re.split(r'\s+', line, maxsplit=1)
        mnemonic = parts[0].upper()
        operands = parts[1].strip() if len(parts) > 1 else ""

        return label, mnemonic, operands

    # @intent:utility_function 多様な数値表現（0Fh, fh, 0x, $, b接尾辞, 10進, 文字）およびラベル名を数値に変換します。
    def _parse_val(self, val_str: str, symbol_map: SymbolMap) -> int:
        token = val_str.strip()
        if not token:
            raise ValueError("Missing value")
        upper = token.upper()

        if len(token) == 3 and token[0] == token[2] == "'":
            return ord(token[1])
        if upper in symbol_map:
            return symbol_map[upper]
        if upper.startswith('0X') and len(upper) > 2:
            return _to_int(upper[2:], 16, token)
        if upper.startswith('$') and len(upper) > 1:
            return _to_int(upper[1:], 16, token)
        if upper.endswith('H') and re.match(r'^[0-9A-F]+H$', upper):
            return int(upper[:-1], 16)
        if upper.endswith('B') and re.match(r'^[01]+B$', upper):
            return int(upper[:-1], 2)
        if upper.isdigit():
            return int(upper)
        if _IDENTIFIER.match(token):
            raise ValueError(f"Undefined symbol: {token}")
        raise ValueError(f"Invalid value: {token}")

    # @intent:utility_function 項を+/-で連結した簡単な式（例: TABLE+2）を評価します。
    def _evaluate(self, expr: str, symbol_map: SymbolMap) -> int:
        expr = expr.strip()
        if len(expr) == 3 and expr[0] == expr[2] == "'":
            return ord(expr[1])
        terms = re.split(r'([+-])', expr.replace(' ', ''))
        if terms and terms[0] == '':
            terms = ['0'] + terms
        total = self._parse_val(terms[0], symbol_map)
        for sign, term in zip(terms[1::2], terms[2::2]):
            value = self._parse_val(term, symbol_map)
            total = total + value if sign == '+' else total - value
        return total


def _strip_comment(line: str) -> str:
    in_quote = False
    for i, ch in enumerate(line):
        if ch == "'":
            in_quote = not in_quote
        elif ch == ';' and not in_quote:
            return line[:i]
    return line


def _to_int(digits: str, base: int, original: str) -> int:
    try:
        return int(digits, base)
    except ValueError:
        raise ValueError(f"Invalid value: {original}") from None


def _split_operands(operands: str) -> List[str]:
    if not operands:
        return []
    return _split_data_items(operands)


def _split_data_items(operands: str) -> List[str]:
    # 引用符内のカンマは区切りとして扱わない
    items, current, in_quote = [], "", False
    for ch in operands:
        if ch == "'":
            in_quote = not in_quote
        if ch == ',' and not in_quote:
            items.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        items.append(current.strip())
    return items


REGISTERS = {"B": 0, "C": 1, "D": 2, "E": 3, "H": 4, "L": 5, "M": 6, "A": 7}
REGISTER_PAIRS = {"B": 0, "D": 1, "H": 2, "SP": 3}
PUSH_POP_PAIRS = {"B": 0, "D": 1, "H": 2, "PSW": 3}
CONDITIONS = {"NZ": 0, "Z": 1, "NC": 2, "C": 3, "PO": 4, "PE": 5, "P": 6, "M": 7}

# オペランド形式ごとのベースオペコード
IMPLIED = {
    "NOP": 0x00, "HLT": 0x76, "RLC": 0x07, "RRC": 0x0F, "RAL": 0x17, "RAR": 0x1F,
    "DAA": 0x27, "CMA": 0x2F, "STC": 0x37, "CMC": 0x3F, "RET": 0xC9, "XCHG": 0xEB,
    "XTHL": 0xE3, "SPHL": 0xF9, "PCHL": 0xE9, "EI": 0xFB, "DI": 0xF3, "RIM": 0x20, "SIM": 0x30,
}
ALU_REGISTER = {"ADD": 0x80, "ADC": 0x88, "SUB": 0x90, "SBB": 0x98, "ANA": 0xA0, "XRA": 0xA8, "ORA": 0xB0, "CMP": 0xB8}
IMMEDIATE8 = {"ADI": 0xC6, "ACI": 0xCE, "SUI": 0xD6, "SBI": 0xDE, "ANI": 0xE6, "XRI": 0xEE, "ORI": 0xF6, "CPI": 0xFE,
              "IN": 0xDB, "OUT": 0xD3}
ADDRESS16 = {"JMP": 0xC3, "CALL": 0xCD, "LDA": 0x3A, "STA": 0x32, "LHLD": 0x2A, "SHLD": 0x22}
REGISTER_PAIR_ONLY = {"INX": 0x03, "DCX": 0x0B, "DAD": 0x09}

for _cc, _code in CONDITIONS.items():
    IMPLIED["R" + _cc] = 0xC0 | (_code << 3)
    ADDRESS16["J" + _cc] = 0xC2 | (_code << 3)
    ADDRESS16["C" + _cc] = 0xC4 | (_code << 3)

# @intent:responsibility 命令の長さを決定します。第1パスでアドレスを確定するために使用されます。
def instruction_length(mnemonic: str) -> Optional[int]:
    if mnemonic in IMPLIED or mnemonic in ALU_REGISTER or mnemonic in REGISTER_PAIR_ONLY:
        return 1
    if mnemonic in ("MOV", "INR", "DCR", "PUSH", "POP", "LDAX", "STAX", "RST"):
        return 1
    if mnemonic in IMMEDIATE8 or mnemonic == "MVI":
        return 2
    if mnemonic in ADDRESS16 or mnemonic == "LXI":
        return 3
    return None


# @intent:responsibility Intel 8085用の2パスアセンブラ実装。
class I8085Assembler(BaseAssembler):
    """
    ORG/DB/DW/EQU疑似命令とラベルをサポートする8085アセンブラ。
    大文字小文字は区別しません。エラーは1始まりの行番号付きのParseErrorとして送出されます。
    """
    def assemble(self, lines: List[str]) -> AssemblyResult:
        symbol_map: SymbolMap = {}
        parsed_lines = []

        for line_no, line in enumerate(lines, 1):
            try:
                parsed_lines.append((line_no, line) + self._parse_line(line))
            except ValueError as e:
                raise ParseError(str(e), line_no) from e

        # First pass: Build symbol map and calculate addresses for labels
        temp_pc = 0
        for line_no, _, label, mnemonic, operands in parsed_lines:
            try:
                temp_pc = self._first_pass_line(label, mnemonic, operands, temp_pc, symbol_map)
            except ValueError as e:
                raise ParseError(str(e), line_no) from e

        # Second pass: Generate binary
        binary_data: List[Tuple[int, int]] = []
        listing: List[ListingLine] = []
        current_pc = 0
        for line_no, source, label, mnemonic, operands in parsed_lines:
            if not mnemonic and not label:
                continue
            try:
                current_pc, encoded = self._second_pass_line(mnemonic, operands, current_pc, symbol_map)
            except ValueError as e:
                raise ParseError(str(e), line_no) from e

            start = current_pc
            for i, b in enumerate(encoded):
                binary_data.append(((start + i) & 0xFFFF, b))
            listing.append(ListingLine(line_no, start, bytes(encoded), source.rstrip()))
            current_pc = start + len(encoded)

        return symbol_map, binary_data, listing

    def _first_pass_line(self, label, mnemonic, operands, pc: int, symbol_map: SymbolMap) -> int:
        if mnemonic and _is_equ(operands):
            # "NAME EQU value" 形式 (コロンなしのラベル)
            name = mnemonic
            self._define(symbol_map, name, self._evaluate(operands.split(None, 1)[1], symbol_map))
            return pc
        if mnemonic == "EQU":
            if not label:
                raise ValueError("EQU requires a label")
            self._define(symbol_map, label, self._evaluate(operands, symbol_map))
            return pc

        if label:
            self._define(symbol_map, label, pc)
        if not mnemonic:
            return pc

        if mnemonic == "ORG":
            origin = self._evaluate(operands, symbol_map)
            if not 0 <= origin <= 0xFFFF:
                raise ValueError(f"ORG address out of range: {operands}")
            return origin
        if mnemonic == "DB":
            return pc + sum(self._data_length(item) for item in _split_data_items(operands))
        if mnemonic == "DW":
            return pc + 2 * len(_split_data_items(operands))

        length = instruction_length(mnemonic)
        if length is None:
            raise ValueError(f"Unknown mnemonic: {mnemonic}")
        return pc + length

    def _second_pass_line(self, mnemonic, operands, pc: int, symbol_map: SymbolMap) -> Tuple[int, List[int]]:
        if not mnemonic or mnemonic == "EQU" or _is_equ(operands):
            return pc, []
        if mnemonic == "ORG":
            return self._evaluate(operands, symbol_map), []
        if mnemonic == "DB":
            encoded = []
            for item in _split_data_items(operands):
                if item.startswith("'") and item.endswith("'") and len(item) > 3:
                    encoded.extend(ord(ch) & 0xFF for ch in item[1:-1])
                else:
                    encoded.append(self._check_range(self._evaluate(item, symbol_map), 8) & 0xFF)
            return pc, encoded
        if mnemonic == "DW":
            encoded = []
            for item in _split_data_items(operands):
                word = self._check_range(self._evaluate(item, symbol_map), 16) & 0xFFFF
                encoded.extend([word & 0xFF, (word >> 8) & 0xFF])
            return pc, encoded
        return pc, self._encode(mnemonic, _split_operands(operands), symbol_map)

    # @intent:responsibility 1命令をオペコードとオペランドバイト列にエンコードします。
    def _encode(self, mnemonic: str, ops: List[str], symbol_map: SymbolMap) -> List[int]:
        if mnemonic in IMPLIED:
            self._expect(mnemonic, ops, 0)
            return [IMPLIED[mnemonic]]

        if mnemonic == "MOV":
            self._expect(mnemonic, ops, 2)
            dst, src = self._register(ops[0]), self._register(ops[1])
            if dst == src == REGISTERS["M"]:
                raise ValueError("MOV M, M is not a valid instruction")
            return [0x40 | (dst << 3) | src]
        if mnemonic == "MVI":
            self._expect(mnemonic, ops, 2)
            return [0x06 | (self._register(ops[0]) << 3), self._byte(ops[1], symbol_map)]
        if mnemonic in ("INR", "DCR"):
            self._expect(mnemonic, ops, 1)
            base = 0x04 if mnemonic == "INR" else 0x05
            return [base | (self._register(ops[0]) << 3)]
        if mnemonic in ALU_REGISTER:
            self._expect(mnemonic, ops, 1)
            return [ALU_REGISTER[mnemonic] | self._register(ops[0])]
        if mnemonic in IMMEDIATE8:
            self._expect(mnemonic, ops, 1)
            return [IMMEDIATE8[mnemonic], self._byte(ops[0], symbol_map)]

        if mnemonic in ADDRESS16:
            self._expect(mnemonic, ops, 1)
            return [ADDRESS16[mnemonic]] + self._word(ops[0], symbol_map)
        if mnemonic == "LXI":
            self._expect(mnemonic, ops, 2)
            rp = self._pair(ops[0], REGISTER_PAIRS)
            return [0x01 | (rp << 4)] + self._word(ops[1], symbol_map)
        if mnemonic in REGISTER_PAIR_ONLY:
            self._expect(mnemonic, ops, 1)
            return [REGISTER_PAIR_ONLY[mnemonic] | (self._pair(ops[0], REGISTER_PAIRS) << 4)]
        if mnemonic in ("PUSH", "POP"):
            self._expect(mnemonic, ops, 1)
            base = 0xC5 if mnemonic == "PUSH" else 0xC1
            return [base | (self._pair(ops[0], PUSH_POP_PAIRS) << 4)]
        if mnemonic in ("LDAX", "STAX"):
            self._expect(mnemonic, ops, 1)
            rp = self._pair(ops[0], {"B": 0, "D": 1})
            base = 0x0A if mnemonic == "LDAX" else 0x02
            return [base | (rp << 4)]
        if mnemonic == "RST":
            self._expect(mnemonic, ops, 1)
            vector = self._evaluate(ops[0], symbol_map)
            if not 0 <= vector <= 7:
                raise ValueError(f"RST vector out of range: {ops[0]}")
            return [0xC7 | (vector << 3)]

        raise ValueError(f"Unknown mnemonic: {mnemonic}")

    def _define(self, symbol_map: SymbolMap, name: str, value: int) -> None:
        name = name.upper()
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid label: {name}")
        if name in REGISTERS or name in REGISTER_PAIRS or name == "PSW":
            raise ValueError(f"Register name cannot be used as a label: {name}")
        if name in symbol_map:
            raise ValueError(f"Duplicate label: {name}")
        symbol_map[name] = value

    @staticmethod
    def _data_length(item: str) -> int:
        if item.startswith("'") and item.endswith("'") and len(item) > 3:
            return len(item) - 2
        return 1

    @staticmethod
    def _expect(mnemonic: str, ops: List[str], count: int) -> None:
        if len(ops) != count:
            raise ValueError(f"{mnemonic} expects {count} operand(s), got {len(ops)}")

    @staticmethod
    def _register(name: str) -> int:
        code = REGISTERS.get(name.upper())
        if code is None:
            raise ValueError(f"Invalid register: {name}")
        return code

    @staticmethod
    def _pair(name: str, table: Dict[str, int]) -> int:
        code = table.get(name.upper())
        if code is None:
            raise ValueError(f"Invalid register pair: {name}")
        return code

    @staticmethod
    def _check_range(value: int, bits: int) -> int:
        limit = 1 << bits
        if not -(limit >> 1) <= value < limit:
            raise ValueError(f"Value out of range for {bits}-bit operand: {value}")
        return value

    def _byte(self, expr: str, symbol_map: SymbolMap) -> int:
        return self._check_range(self._evaluate(expr, symbol_map), 8) & 0xFF

    def _word(self, expr: str, symbol_map: SymbolMap) -> List[int]:
        value = self._check_range(self._evaluate(expr, symbol_map), 16) & 0xFFFF
        return [value & 0xFF, (value >> 8) & 0xFF]


def _is_equ(operands: Optional[str]) -> bool:
    if not operands:
        return False
    parts = operands.split(None, 1)
    return len(parts) == 2 and parts[0].upper() == "EQU"
