# src/retro6502/arch/mos6502/instructions/base.py
"""
MOS 6502 アドレッシングモード解決ロジックと、命令実行中の一時状態。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

from retro6502.transport.bus import Bus
from retro6502.arch.mos6502.state import Mos6502CpuState

STACK_BASE = 0x0100

# @intent:responsibility 12種+アキュムレータのアドレッシングモードを識別するタグ。
class AddrMode(Enum):
    IMP = "IMP"    # Implied
    ACC = "ACC"    # Accumulator
    IMM = "IMM"    # #$nn
    ZP0 = "ZP0"    # $nn
    ZPX = "ZPX"    # $nn,X
    ZPY = "ZPY"    # $nn,Y
    REL = "REL"    # Branch offset
    ABS = "ABS"    # $nnnn
    ABX = "ABX"    # $nnnn,X
    ABY = "ABY"    # $nnnn,Y
    IND = "IND"    # ($nnnn) - JMP only
    IZX = "IZX"    # ($nn,X)
    IZY = "IZY"    # ($nn),Y

# @intent:responsibility 各モードがオペコードの後に消費するオペランドのバイト数。
# @intent:invariant 実行系と逆アセンブラの両方がこの表に従う。
OPERAND_LENGTH: Dict[AddrMode, int] = {
    AddrMode.IMP: 0, AddrMode.ACC: 0,
    AddrMode.IMM: 1, AddrMode.ZP0: 1, AddrMode.ZPX: 1, AddrMode.ZPY: 1,
    AddrMode.REL: 1, AddrMode.IZX: 1, AddrMode.IZY: 1,
    AddrMode.ABS: 2, AddrMode.ABX: 2, AddrMode.ABY: 2, AddrMode.IND: 2,
}

# @intent:responsibility 1命令の実行中だけ有効な一時状態。命令ごとにリセットされる。
@dataclass
class ExecutionContext:
    """
    opcode: フェッチしたオペコード
    fetched: オペランド値 (IMP/ACCの場合はAレジスタの値)
    addr_abs: 解決された実効アドレス
    addr_rel: 分岐の相対オフセット (16bitに符号拡張済み)
    addr_mode: アキュムレータ/メモリのどちらに書き戻すかの判定に使う
    """
    opcode: int = 0
    fetched: int = 0
    addr_abs: int = 0
    addr_rel: int = 0
    addr_mode: AddrMode = AddrMode.IMP

    @property
    def operates_on_accumulator(self) -> bool:
        return self.addr_mode in (AddrMode.IMP, AddrMode.ACC)

# @intent:responsibility ページ境界交差判定。
def is_page_crossed(addr1: int, addr2: int) -> bool:
    return (addr1 & 0xFF00) != (addr2 & 0xFF00)

# @intent:responsibility 解決済みアドレスからオペランドを読み出す（IMP/ACCではAレジスタの値）。
def fetch(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    if not ctx.operates_on_accumulator:
        ctx.fetched = bus.read(ctx.addr_abs)
    return ctx.fetched

# @intent:responsibility シフト/ローテート結果をAレジスタまたはメモリに書き戻す。
def write_back(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext, value: int) -> None:
    if ctx.operates_on_accumulator:
        state.a = value & 0xFF
    else:
        bus.write(ctx.addr_abs, value & 0xFF)

def read_word(bus: Bus, address: int) -> int:
    lo = bus.read(address & 0xFFFF)
    hi = bus.read((address + 1) & 0xFFFF)
    return (hi << 8) | lo

# --- Stack ---
# @intent:invariant Pushは書き込んでからSPを減らし、Popは増やしてから読む。SPは8bitでラップする。

def push(state: Mos6502CpuState, bus: Bus, value: int) -> None:
    bus.write(STACK_BASE | state.sp, value & 0xFF)
    state.sp = (state.sp - 1) & 0xFF

def pop(state: Mos6502CpuState, bus: Bus) -> int:
    state.sp = (state.sp + 1) & 0xFF
    return bus.read(STACK_BASE | state.sp)

# @intent:responsibility 16bit値を上位バイト、下位バイトの順にPushする。
def push_word(state: Mos6502CpuState, bus: Bus, value: int) -> None:
    push(state, bus, (value >> 8) & 0xFF)
    push(state, bus, value & 0xFF)

def pop_word(state: Mos6502CpuState, bus: Bus) -> int:
    lo = pop(state, bus)
    hi = pop(state, bus)
    return (hi << 8) | lo

# --- Addressing Modes ---
# 各関数はPCをオペランドの後ろまで進め、addr_abs/addr_relを設定し、
# ページ境界交差による追加サイクル (0 or 1) を返す。
# 呼び出し時点でPCはオペコードの次のバイトを指している。

def _read_operand(state: Mos6502CpuState, bus: Bus) -> int:
    val = bus.read(state.pc)
    state.pc = (state.pc + 1) & 0xFFFF
    return val

def _read_operand_word(state: Mos6502CpuState, bus: Bus) -> int:
    lo = _read_operand(state, bus)
    hi = _read_operand(state, bus)
    return (hi << 8) | lo

# @intent:responsibility Implied Mode. オペランドはAレジスタ。
def addr_implied(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ctx.fetched = state.a
    return 0

# @intent:responsibility Accumulator Mode (ASL A など)
def addr_accumulator(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ctx.fetched = state.a
    return 0

# @intent:responsibility Immediate Mode (#$xx). 実効アドレスはオペランドバイト自身。
def addr_immediate(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ctx.addr_abs = state.pc
    state.pc = (state.pc + 1) & 0xFFFF
    return 0

# @intent:responsibility Zero Page Mode ($xx)
def addr_zeropage(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ctx.addr_abs = _read_operand(state, bus) & 0x00FF
    return 0

# @intent:responsibility Zero Page, X Mode ($xx,X)
# @intent:note ラップアラウンドあり (0xFF + 1 -> 0x00)
def addr_zeropage_x(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ctx.addr_abs = (_read_operand(state, bus) + state.x) & 0x00FF
    return 0

# @intent:responsibility Zero Page, Y Mode ($xx,Y) - LDX, STX only
def addr_zeropage_y(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ctx.addr_abs = (_read_operand(state, bus) + state.y) & 0x00FF
    return 0

# @intent:responsibility Relative Mode (Branch)
# @intent:note オフセットは8bit符号付き。16bitに符号拡張して保持する。
def addr_relative(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    offset = _read_operand(state, bus)
    if offset & 0x80:
        offset |= 0xFF00
    ctx.addr_rel = offset
    return 0

# @intent:responsibility Absolute Mode ($xxxx)
def addr_absolute(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ctx.addr_abs = _read_operand_word(state, bus)
    return 0

# @intent:responsibility Absolute, X Mode ($xxxx,X)
def addr_absolute_x(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    base_addr = _read_operand_word(state, bus)
    ctx.addr_abs = (base_addr + state.x) & 0xFFFF
    return 1 if is_page_crossed(base_addr, ctx.addr_abs) else 0

# @intent:responsibility Absolute, Y Mode ($xxxx,Y)
def addr_absolute_y(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    base_addr = _read_operand_word(state, bus)
    ctx.addr_abs = (base_addr + state.y) & 0xFFFF
    return 1 if is_page_crossed(base_addr, ctx.addr_abs) else 0

# @intent:responsibility Indirect Mode ($xxxx) - JMP only
# @intent:note ポインタ下位が$FFの場合、上位バイトは次ページではなく同じページの先頭から読む（実機のバグ）。
def addr_indirect(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ptr = _read_operand_word(state, bus)
    lo = bus.read(ptr)
    if (ptr & 0x00FF) == 0x00FF:
        hi = bus.read(ptr & 0xFF00)
    else:
        hi = bus.read((ptr + 1) & 0xFFFF)
    ctx.addr_abs = (hi << 8) | lo
    return 0

# @intent:responsibility Indexed Indirect Mode ($xx,X) - "Pre-indexed"
# @intent:note ゼロページ内でXを加算(ラップアラウンド)し、そこにあるポインタを読む。
def addr_indexed_indirect(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ptr_addr = (_read_operand(state, bus) + state.x) & 0xFF
    lo = bus.read(ptr_addr)
    hi = bus.read((ptr_addr + 1) & 0xFF)
    ctx.addr_abs = (hi << 8) | lo
    return 0

# @intent:responsibility Indirect Indexed Mode ($xx),Y - "Post-indexed"
# @intent:note ゼロページのポインタを読み、ベースアドレスを得てからYを加算。
def addr_indirect_indexed(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ptr_addr = _read_operand(state, bus)
    lo = bus.read(ptr_addr)
    hi = bus.read((ptr_addr + 1) & 0xFF)
    base_addr = (hi << 8) | lo
    ctx.addr_abs = (base_addr + state.y) & 0xFFFF
    return 1 if is_page_crossed(base_addr, ctx.addr_abs) else 0

AddrFunc = Callable[[Mos6502CpuState, Bus, ExecutionContext], int]

ADDRESSING_MODES: Dict[AddrMode, AddrFunc] = {
    AddrMode.IMP: addr_implied,
    AddrMode.ACC: addr_accumulator,
    AddrMode.IMM: addr_immediate,
    AddrMode.ZP0: addr_zeropage,
    AddrMode.ZPX: addr_zeropage_x,
    AddrMode.ZPY: addr_zeropage_y,
    AddrMode.REL: addr_relative,
    AddrMode.ABS: addr_absolute,
    AddrMode.ABX: addr_absolute_x,
    AddrMode.ABY: addr_absolute_y,
    AddrMode.IND: addr_indirect,
    AddrMode.IZX: addr_indexed_indirect,
    AddrMode.IZY: addr_indirect_indexed,
}
