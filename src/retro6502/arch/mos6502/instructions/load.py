# src/retro6502/arch/mos6502/instructions/load.py
"""
MOS 6502 転送系命令 (Load/Store/Transfer)。
"""
from retro6502.transport.bus import Bus
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions.base import ExecutionContext, fetch

# --- Loads ---
# @intent:responsibility メモリからレジスタへロードし、N, Zフラグを更新。

def lda(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.a = fetch(state, bus, ctx)
    state.update_nz(state.a)
    return 0

def ldx(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.x = fetch(state, bus, ctx)
    state.update_nz(state.x)
    return 0

def ldy(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.y = fetch(state, bus, ctx)
    state.update_nz(state.y)
    return 0

# --- Stores ---
# @intent:responsibility レジスタの内容をメモリへストア。フラグ変化なし。

def sta(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    bus.write(ctx.addr_abs, state.a)
    return 0

def stx(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    bus.write(ctx.addr_abs, state.x)
    return 0

def sty(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    bus.write(ctx.addr_abs, state.y)
    return 0

# --- Register Transfers (TAX, TAY, TXA, TYA, TSX, TXS) ---

def tax(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.x = state.a
    state.update_nz(state.x)
    return 0

def tay(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.y = state.a
    state.update_nz(state.y)
    return 0

def txa(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.a = state.x
    state.update_nz(state.a)
    return 0

def tya(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.a = state.y
    state.update_nz(state.a)
    return 0

def tsx(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.x = state.sp
    state.update_nz(state.x)
    return 0

# @intent:note TXSはXからSPへ転送。N, Zフラグは更新 *されない*。
def txs(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.sp = state.x
    return 0
