# src/retro6502/arch/mos6502/instructions/alu.py
"""
MOS 6502 算術論理演算命令 (ALU)。
Dフラグは保持するのみで、ADC/SBCは常にバイナリ演算として実行する。

各命令の戻り値は命令自身が追加で要するサイクル数。ALU命令では常に0。
ページ境界交差の追加サイクルはアドレッシングモード側で計上される。
"""
from retro6502.transport.bus import Bus
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions.base import ExecutionContext, fetch, write_back

# --- Logical Operations (AND, ORA, EOR, BIT) ---

def and_(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.a = state.a & fetch(state, bus, ctx)
    state.update_nz(state.a)
    return 0

def ora(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.a = state.a | fetch(state, bus, ctx)
    state.update_nz(state.a)
    return 0

def eor(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.a = state.a ^ fetch(state, bus, ctx)
    state.update_nz(state.a)
    return 0

# @intent:note BIT命令はメモリの値のビット7, 6をそれぞれN, Vフラグにコピーし、A & Mの結果でZフラグを設定する。Aは変化しない。
def bit(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    val = fetch(state, bus, ctx)
    state.update_flags(
        z=(state.a & val) == 0,
        v=(val & 0x40) != 0,
        n=(val & 0x80) != 0,
    )
    return 0

# --- Arithmetic Operations (ADC, SBC) ---

# @intent:responsibility 標準バイナリ加算ロジック。SBCもオペランドを反転してここを通る。
def _add_with_carry(state: Mos6502CpuState, val: int) -> None:
    a = state.a
    res_wide = a + val + (1 if state.flag_c else 0)
    res = res_wide & 0xFF
    # V is set if both operands share a sign and the result's sign differs.
    v = (~(a ^ val) & (a ^ res) & 0x80) != 0
    state.a = res
    state.update_flags(c=res_wide > 0xFF, v=v)
    state.update_nz(res)

def adc(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    _add_with_carry(state, fetch(state, bus, ctx))
    return 0

# SBC A, M  ==  ADC A, ~M
def sbc(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    _add_with_carry(state, fetch(state, bus, ctx) ^ 0xFF)
    return 0

# --- Compare Operations (CMP, CPX, CPY) ---
# @intent:note 結果を格納しない減算。C は Reg >= Val (借りなし) のときセット。

def _compare(state: Mos6502CpuState, reg_val: int, mem_val: int) -> None:
    diff = (reg_val - mem_val) & 0xFF
    state.update_flags(c=reg_val >= mem_val, z=reg_val == mem_val, n=(diff & 0x80) != 0)

def cmp(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    _compare(state, state.a, fetch(state, bus, ctx))
    return 0

def cpx(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    _compare(state, state.x, fetch(state, bus, ctx))
    return 0

def cpy(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    _compare(state, state.y, fetch(state, bus, ctx))
    return 0

# --- Shift / Rotate Operations (ASL, LSR, ROL, ROR) ---
# @intent:note アドレッシングモードに応じて、Aレジスタかメモリのどちらかに書き戻す。

def asl(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    val = fetch(state, bus, ctx)
    res = (val << 1) & 0xFF
    state.set_flag(state.C_FLAG, (val & 0x80) != 0)
    state.update_nz(res)
    write_back(state, bus, ctx, res)
    return 0

def lsr(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    val = fetch(state, bus, ctx)
    res = val >> 1
    state.set_flag(state.C_FLAG, (val & 0x01) != 0)
    state.update_nz(res) # N is always 0 for LSR
    write_back(state, bus, ctx, res)
    return 0

def rol(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    val = fetch(state, bus, ctx)
    res = ((val << 1) | (1 if state.flag_c else 0)) & 0xFF
    state.set_flag(state.C_FLAG, (val & 0x80) != 0)
    state.update_nz(res)
    write_back(state, bus, ctx, res)
    return 0

def ror(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    val = fetch(state, bus, ctx)
    res = (val >> 1) | (0x80 if state.flag_c else 0)
    state.set_flag(state.C_FLAG, (val & 0x01) != 0)
    state.update_nz(res)
    write_back(state, bus, ctx, res)
    return 0

# --- Increment / Decrement (INC, DEC, INX, DEX, INY, DEY) ---

def inc(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    res = (fetch(state, bus, ctx) + 1) & 0xFF
    bus.write(ctx.addr_abs, res)
    state.update_nz(res)
    return 0

def dec(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    res = (fetch(state, bus, ctx) - 1) & 0xFF
    bus.write(ctx.addr_abs, res)
    state.update_nz(res)
    return 0

def inx(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.x = (state.x + 1) & 0xFF
    state.update_nz(state.x)
    return 0

def dex(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.x = (state.x - 1) & 0xFF
    state.update_nz(state.x)
    return 0

def iny(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.y = (state.y + 1) & 0xFF
    state.update_nz(state.y)
    return 0

def dey(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.y = (state.y - 1) & 0xFF
    state.update_nz(state.y)
    return 0
