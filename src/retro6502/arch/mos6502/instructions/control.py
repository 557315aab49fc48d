# src/retro6502/arch/mos6502/instructions/control.py
"""
MOS 6502 制御系命令 (Branch, Jump, Stack, Flags, Interrupt, NOP)。
"""
from retro6502.transport.bus import Bus
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions.base import (
    ExecutionContext, is_page_crossed, push, pop, push_word, pop_word, read_word,
)

IRQ_VECTOR = 0xFFFE

# --- Branch Instructions ---

# @intent:responsibility 条件成立時にPCへ相対オフセットを加算する。
# @intent:note 成立で+1サイクル、分岐先が分岐命令直後のPCと別ページなら更に+1サイクル。
def _branch(state: Mos6502CpuState, ctx: ExecutionContext, condition: bool) -> int:
    if not condition:
        return 0
    target = (state.pc + ctx.addr_rel) & 0xFFFF
    extra = 2 if is_page_crossed(target, state.pc) else 1
    ctx.addr_abs = target
    state.pc = target
    return extra

def bcc(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return _branch(state, ctx, not state.flag_c)

def bcs(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return _branch(state, ctx, state.flag_c)

def beq(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return _branch(state, ctx, state.flag_z)

def bne(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return _branch(state, ctx, not state.flag_z)

def bmi(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return _branch(state, ctx, state.flag_n)

def bpl(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return _branch(state, ctx, not state.flag_n)

def bvc(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return _branch(state, ctx, not state.flag_v)

def bvs(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return _branch(state, ctx, state.flag_v)

# --- Jump Instructions ---

def jmp(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.pc = ctx.addr_abs
    return 0

# @intent:note スタックに積むのは「JSR命令の最後のバイトのアドレス」= 現在のPC - 1。
def jsr(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    push_word(state, bus, (state.pc - 1) & 0xFFFF)
    state.pc = ctx.addr_abs
    return 0

def rts(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.pc = (pop_word(state, bus) + 1) & 0xFFFF
    return 0

# --- Stack Operations (PHA, PHP, PLA, PLP) ---

def pha(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    push(state, bus, state.a)
    return 0

# @intent:note PHPはBとUを1にした値を積む。レジスタ側のPは変化しない。
def php(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    push(state, bus, state.p | state.B_FLAG | state.U_FLAG)
    return 0

def pla(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.a = pop(state, bus)
    state.update_nz(state.a)
    return 0

# @intent:note Bはレジスタ上には存在しないビットなので捨て、Uは常に1にする。
def plp(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.p = pop(state, bus)
    state.set_flag(state.B_FLAG, False)
    state.set_flag(state.U_FLAG, True)
    return 0

# --- Flag Operations (CLC, SEC, etc) ---

def clc(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.set_flag(state.C_FLAG, False)
    return 0

def sec(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.set_flag(state.C_FLAG, True)
    return 0

def cli(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.set_flag(state.I_FLAG, False)
    return 0

def sei(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.set_flag(state.I_FLAG, True)
    return 0

def clv(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.set_flag(state.V_FLAG, False)
    return 0

def cld(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.set_flag(state.D_FLAG, False)
    return 0

def sed(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.set_flag(state.D_FLAG, True)
    return 0

# --- System / Other ---

# @intent:note 非公式のABS,X形式NOP ($1C等) のページクロス分はアドレッシングモード側で加算される。
def nop(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return 0

# @intent:responsibility 未定義オペコード。何も変更しない。
def xxx(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    return 0

# @intent:note BRKは1バイト命令だが、戻り先はパディングバイトを飛ばした PC + 1。
def brk(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.pc = (state.pc + 1) & 0xFFFF
    push_word(state, bus, state.pc)
    push(state, bus, state.p | state.B_FLAG | state.U_FLAG)
    state.set_flag(state.I_FLAG, True)
    state.pc = read_word(bus, IRQ_VECTOR)
    return 0

# @intent:note 復元したPからB, Uをクリアする。Uは次のフェッチで再び1になる。
def rti(state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    state.p = pop(state, bus)
    state.set_flag(state.B_FLAG, False)
    state.set_flag(state.U_FLAG, False)
    state.pc = pop_word(state, bus)
    return 0
