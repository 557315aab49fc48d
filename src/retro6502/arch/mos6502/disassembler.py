# src/retro6502/arch/mos6502/disassembler.py
"""
MOS 6502 逆アセンブラ。
"""
from typing import List, Sequence, Tuple
from retro6502.transport.bus import Bus
from retro6502.arch.mos6502.instructions.base import AddrMode, OPERAND_LENGTH
from retro6502.arch.mos6502.instructions.maps import OPCODE_TABLE

# @intent:responsibility オペコード1バイトから命令全体のバイト長を返す。
def instruction_length(opcode: int) -> int:
    return OPCODE_TABLE[opcode & 0xFF].length

# @intent:responsibility アドレッシングモードに応じたオペランド文字列を組み立てる。
# @intent:note next_pc は命令の次のアドレス。相対分岐の飛び先表示に使う。
def format_operand(mode: AddrMode, operand: Sequence[int], next_pc: int) -> str:
    if mode == AddrMode.IMM:
        return f"#${operand[0]:02X}"
    if mode == AddrMode.ACC:
        return "A"
    if mode == AddrMode.ZP0:
        return f"${operand[0]:02X}"
    if mode == AddrMode.ZPX:
        return f"${operand[0]:02X},X"
    if mode == AddrMode.ZPY:
        return f"${operand[0]:02X},Y"
    if mode == AddrMode.IZX:
        return f"(${operand[0]:02X},X)"
    if mode == AddrMode.IZY:
        return f"(${operand[0]:02X}),Y"
    if mode == AddrMode.REL:
        offset = operand[0]
        if offset & 0x80:
            offset |= 0xFF00
        target = (next_pc + offset) & 0xFFFF
        return f"${operand[0]:02X} [${target:04X}]"

    if len(operand) == 2:
        word = (operand[1] << 8) | operand[0]
        if mode == AddrMode.ABS:
            return f"${word:04X}"
        if mode == AddrMode.ABX:
            return f"${word:04X},X"
        if mode == AddrMode.ABY:
            return f"${word:04X},Y"
        if mode == AddrMode.IND:
            return f"(${word:04X})"
    return ""

# @intent:responsibility 指定されたメモリ範囲 (start..stop, 両端を含む) を逆アセンブルする。
# @intent:invariant Bus.peekのみを使うため、アクセスログもメモリも変化しない。
def disassemble(bus: Bus, start_addr: int, stop_addr: int) -> List[Tuple[int, str]]:
    """
    メモリを解析し、(アドレス, テキスト) のリストを返す。
    テキストは "$8000: LDX #$0A {IMM}" の形式。

    各命令で消費するバイト数は OPERAND_LENGTH に従い、実行時と一致する。
    """
    results: List[Tuple[int, str]] = []
    addr = start_addr & 0xFFFF
    stop_addr = min(stop_addr, 0xFFFF)

    while addr <= stop_addr:
        line_addr = addr
        instruction = OPCODE_TABLE[bus.peek(addr)]
        addr += 1

        operand_len = OPERAND_LENGTH[instruction.addr_mode]
        operand = []
        for _ in range(operand_len):
            # アドレス空間の終端をまたぐ命令はオペランドを表示しない
            if addr > 0xFFFF:
                break
            operand.append(bus.peek(addr))
            addr += 1

        operand_text = ""
        if len(operand) == operand_len:
            operand_text = format_operand(instruction.addr_mode, operand, addr & 0xFFFF)
        parts = [f"${line_addr:04X}:", instruction.mnemonic]
        if operand_text:
            parts.append(operand_text)
        parts.append(f"{{{instruction.addr_mode.value}}}")
        results.append((line_addr, " ".join(parts)))

    return results
