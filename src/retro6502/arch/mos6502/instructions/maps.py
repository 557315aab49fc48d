# src/retro6502/arch/mos6502/instructions/maps.py
"""
MOS 6502 命令マップ（256エントリのオペコードテーブル）と実行ディスパッチ。
"""
from enum import Enum
from typing import Callable, Dict, NamedTuple, Tuple

from retro6502.transport.bus import Bus
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions import base, load, alu, control
from retro6502.arch.mos6502.instructions.base import AddrMode, ExecutionContext

# @intent:responsibility 命令の種類を識別するタグ。XXXは未定義オペコード。
class Op(Enum):
    ADC = "ADC"
    AND = "AND"
    ASL = "ASL"
    BCC = "BCC"
    BCS = "BCS"
    BEQ = "BEQ"
    BIT = "BIT"
    BMI = "BMI"
    BNE = "BNE"
    BPL = "BPL"
    BRK = "BRK"
    BVC = "BVC"
    BVS = "BVS"
    CLC = "CLC"
    CLD = "CLD"
    CLI = "CLI"
    CLV = "CLV"
    CMP = "CMP"
    CPX = "CPX"
    CPY = "CPY"
    DEC = "DEC"
    DEX = "DEX"
    DEY = "DEY"
    EOR = "EOR"
    INC = "INC"
    INX = "INX"
    INY = "INY"
    JMP = "JMP"
    JSR = "JSR"
    LDA = "LDA"
    LDX = "LDX"
    LDY = "LDY"
    LSR = "LSR"
    NOP = "NOP"
    ORA = "ORA"
    PHA = "PHA"
    PHP = "PHP"
    PLA = "PLA"
    PLP = "PLP"
    ROL = "ROL"
    ROR = "ROR"
    RTI = "RTI"
    RTS = "RTS"
    SBC = "SBC"
    SEC = "SEC"
    SED = "SED"
    SEI = "SEI"
    STA = "STA"
    STX = "STX"
    STY = "STY"
    TAX = "TAX"
    TAY = "TAY"
    TSX = "TSX"
    TXA = "TXA"
    TXS = "TXS"
    TYA = "TYA"
    XXX = "???"

# Execution Function Type: 戻り値は命令自身が要する追加サイクル (分岐成立時など)
ExecFunc = Callable[[Mos6502CpuState, Bus, ExecutionContext], int]

OPERATIONS: Dict[Op, ExecFunc] = {
    Op.ADC: alu.adc, Op.SBC: alu.sbc, Op.AND: alu.and_, Op.ORA: alu.ora, Op.EOR: alu.eor,
    Op.BIT: alu.bit, Op.CMP: alu.cmp, Op.CPX: alu.cpx, Op.CPY: alu.cpy,
    Op.ASL: alu.asl, Op.LSR: alu.lsr, Op.ROL: alu.rol, Op.ROR: alu.ror,
    Op.INC: alu.inc, Op.DEC: alu.dec, Op.INX: alu.inx, Op.DEX: alu.dex, Op.INY: alu.iny, Op.DEY: alu.dey,
    Op.LDA: load.lda, Op.LDX: load.ldx, Op.LDY: load.ldy,
    Op.STA: load.sta, Op.STX: load.stx, Op.STY: load.sty,
    Op.TAX: load.tax, Op.TAY: load.tay, Op.TXA: load.txa, Op.TYA: load.tya, Op.TSX: load.tsx, Op.TXS: load.txs,
    Op.BCC: control.bcc, Op.BCS: control.bcs, Op.BEQ: control.beq, Op.BNE: control.bne,
    Op.BMI: control.bmi, Op.BPL: control.bpl, Op.BVC: control.bvc, Op.BVS: control.bvs,
    Op.JMP: control.jmp, Op.JSR: control.jsr, Op.RTS: control.rts,
    Op.PHA: control.pha, Op.PHP: control.php, Op.PLA: control.pla, Op.PLP: control.plp,
    Op.CLC: control.clc, Op.SEC: control.sec, Op.CLI: control.cli, Op.SEI: control.sei,
    Op.CLV: control.clv, Op.CLD: control.cld, Op.SED: control.sed,
    Op.NOP: control.nop, Op.BRK: control.brk, Op.RTI: control.rti, Op.XXX: control.xxx,
}

# @intent:responsibility オペコードテーブルの1エントリ。構築後は変更されない。
class Instruction(NamedTuple):
    mnemonic: str
    operation: Op
    addr_mode: AddrMode
    cycles: int

    @property
    def length(self) -> int:
        return 1 + base.OPERAND_LENGTH[self.addr_mode]

ILLEGAL = Instruction(Op.XXX.value, Op.XXX, AddrMode.IMP, 0)

_IMP, _ACC, _IMM, _ZP0, _ZPX, _ZPY, _REL = (AddrMode.IMP, AddrMode.ACC, AddrMode.IMM, AddrMode.ZP0,
                                            AddrMode.ZPX, AddrMode.ZPY, AddrMode.REL)
_ABS, _ABX, _ABY, _IND, _IZX, _IZY = (AddrMode.ABS, AddrMode.ABX, AddrMode.ABY, AddrMode.IND,
                                      AddrMode.IZX, AddrMode.IZY)

# Opcode Entry: (Operation, Addressing Mode, Base Cycles)
OPCODE_MAP: Dict[int, Tuple[Op, AddrMode, int]] = {
    # --- Load/Store/Transfer ---
    0xA9: (Op.LDA, _IMM, 2), 0xA5: (Op.LDA, _ZP0, 3), 0xB5: (Op.LDA, _ZPX, 4), 0xAD: (Op.LDA, _ABS, 4),
    0xBD: (Op.LDA, _ABX, 4), 0xB9: (Op.LDA, _ABY, 4), 0xA1: (Op.LDA, _IZX, 6), 0xB1: (Op.LDA, _IZY, 5),

    0xA2: (Op.LDX, _IMM, 2), 0xA6: (Op.LDX, _ZP0, 3), 0xB6: (Op.LDX, _ZPY, 4), 0xAE: (Op.LDX, _ABS, 4),
    0xBE: (Op.LDX, _ABY, 4),

    0xA0: (Op.LDY, _IMM, 2), 0xA4: (Op.LDY, _ZP0, 3), 0xB4: (Op.LDY, _ZPX, 4), 0xAC: (Op.LDY, _ABS, 4),
    0xBC: (Op.LDY, _ABX, 4),

    0x85: (Op.STA, _ZP0, 3), 0x95: (Op.STA, _ZPX, 4), 0x8D: (Op.STA, _ABS, 4), 0x9D: (Op.STA, _ABX, 5),
    0x99: (Op.STA, _ABY, 5), 0x81: (Op.STA, _IZX, 6), 0x91: (Op.STA, _IZY, 6),

    0x86: (Op.STX, _ZP0, 3), 0x96: (Op.STX, _ZPY, 4), 0x8E: (Op.STX, _ABS, 4),
    0x84: (Op.STY, _ZP0, 3), 0x94: (Op.STY, _ZPX, 4), 0x8C: (Op.STY, _ABS, 4),

    0xAA: (Op.TAX, _IMP, 2), 0xA8: (Op.TAY, _IMP, 2), 0x8A: (Op.TXA, _IMP, 2),
    0x98: (Op.TYA, _IMP, 2), 0x9A: (Op.TXS, _IMP, 2), 0xBA: (Op.TSX, _IMP, 2),

    # --- ALU Operations ---
    0x69: (Op.ADC, _IMM, 2), 0x65: (Op.ADC, _ZP0, 3), 0x75: (Op.ADC, _ZPX, 4), 0x6D: (Op.ADC, _ABS, 4),
    0x7D: (Op.ADC, _ABX, 4), 0x79: (Op.ADC, _ABY, 4), 0x61: (Op.ADC, _IZX, 6), 0x71: (Op.ADC, _IZY, 5),

    0xE9: (Op.SBC, _IMM, 2), 0xE5: (Op.SBC, _ZP0, 3), 0xF5: (Op.SBC, _ZPX, 4), 0xED: (Op.SBC, _ABS, 4),
    0xFD: (Op.SBC, _ABX, 4), 0xF9: (Op.SBC, _ABY, 4), 0xE1: (Op.SBC, _IZX, 6), 0xF1: (Op.SBC, _IZY, 5),

    0xC9: (Op.CMP, _IMM, 2), 0xC5: (Op.CMP, _ZP0, 3), 0xD5: (Op.CMP, _ZPX, 4), 0xCD: (Op.CMP, _ABS, 4),
    0xDD: (Op.CMP, _ABX, 4), 0xD9: (Op.CMP, _ABY, 4), 0xC1: (Op.CMP, _IZX, 6), 0xD1: (Op.CMP, _IZY, 5),

    0xE0: (Op.CPX, _IMM, 2), 0xE4: (Op.CPX, _ZP0, 3), 0xEC: (Op.CPX, _ABS, 4),
    0xC0: (Op.CPY, _IMM, 2), 0xC4: (Op.CPY, _ZP0, 3), 0xCC: (Op.CPY, _ABS, 4),

    0x29: (Op.AND, _IMM, 2), 0x25: (Op.AND, _ZP0, 3), 0x35: (Op.AND, _ZPX, 4), 0x2D: (Op.AND, _ABS, 4),
    0x3D: (Op.AND, _ABX, 4), 0x39: (Op.AND, _ABY, 4), 0x21: (Op.AND, _IZX, 6), 0x31: (Op.AND, _IZY, 5),

    0x09: (Op.ORA, _IMM, 2), 0x05: (Op.ORA, _ZP0, 3), 0x15: (Op.ORA, _ZPX, 4), 0x0D: (Op.ORA, _ABS, 4),
    0x1D: (Op.ORA, _ABX, 4), 0x19: (Op.ORA, _ABY, 4), 0x01: (Op.ORA, _IZX, 6), 0x11: (Op.ORA, _IZY, 5),

    0x49: (Op.EOR, _IMM, 2), 0x45: (Op.EOR, _ZP0, 3), 0x55: (Op.EOR, _ZPX, 4), 0x4D: (Op.EOR, _ABS, 4),
    0x5D: (Op.EOR, _ABX, 4), 0x59: (Op.EOR, _ABY, 4), 0x41: (Op.EOR, _IZX, 6), 0x51: (Op.EOR, _IZY, 5),

    0x24: (Op.BIT, _ZP0, 3), 0x2C: (Op.BIT, _ABS, 4),

    # Shift / Rotate
    0x0A: (Op.ASL, _ACC, 2), 0x06: (Op.ASL, _ZP0, 5), 0x16: (Op.ASL, _ZPX, 6), 0x0E: (Op.ASL, _ABS, 6),
    0x1E: (Op.ASL, _ABX, 7),
    0x4A: (Op.LSR, _ACC, 2), 0x46: (Op.LSR, _ZP0, 5), 0x56: (Op.LSR, _ZPX, 6), 0x4E: (Op.LSR, _ABS, 6),
    0x5E: (Op.LSR, _ABX, 7),
    0x2A: (Op.ROL, _ACC, 2), 0x26: (Op.ROL, _ZP0, 5), 0x36: (Op.ROL, _ZPX, 6), 0x2E: (Op.ROL, _ABS, 6),
    0x3E: (Op.ROL, _ABX, 7),
    0x6A: (Op.ROR, _ACC, 2), 0x66: (Op.ROR, _ZP0, 5), 0x76: (Op.ROR, _ZPX, 6), 0x6E: (Op.ROR, _ABS, 6),
    0x7E: (Op.ROR, _ABX, 7),

    # INC/DEC
    0xE6: (Op.INC, _ZP0, 5), 0xF6: (Op.INC, _ZPX, 6), 0xEE: (Op.INC, _ABS, 6), 0xFE: (Op.INC, _ABX, 7),
    0xC6: (Op.DEC, _ZP0, 5), 0xD6: (Op.DEC, _ZPX, 6), 0xCE: (Op.DEC, _ABS, 6), 0xDE: (Op.DEC, _ABX, 7),
    0xE8: (Op.INX, _IMP, 2), 0xCA: (Op.DEX, _IMP, 2), 0xC8: (Op.INY, _IMP, 2), 0x88: (Op.DEY, _IMP, 2),

    # --- Control Instructions ---
    # Branch: +1 if branch taken, +2 if page crossed
    0x90: (Op.BCC, _REL, 2), 0xB0: (Op.BCS, _REL, 2), 0xF0: (Op.BEQ, _REL, 2), 0xD0: (Op.BNE, _REL, 2),
    0x30: (Op.BMI, _REL, 2), 0x10: (Op.BPL, _REL, 2), 0x50: (Op.BVC, _REL, 2), 0x70: (Op.BVS, _REL, 2),

    # Jump / Subroutine
    0x4C: (Op.JMP, _ABS, 3), 0x6C: (Op.JMP, _IND, 5), 0x20: (Op.JSR, _ABS, 6), 0x60: (Op.RTS, _IMP, 6),

    # Stack
    0x48: (Op.PHA, _IMP, 3), 0x08: (Op.PHP, _IMP, 3), 0x68: (Op.PLA, _IMP, 4), 0x28: (Op.PLP, _IMP, 4),

    # Flags
    0x18: (Op.CLC, _IMP, 2), 0x38: (Op.SEC, _IMP, 2), 0x58: (Op.CLI, _IMP, 2), 0x78: (Op.SEI, _IMP, 2),
    0xB8: (Op.CLV, _IMP, 2), 0xD8: (Op.CLD, _IMP, 2), 0xF8: (Op.SED, _IMP, 2),

    # System
    0xEA: (Op.NOP, _IMP, 2), 0x00: (Op.BRK, _IMP, 7), 0x40: (Op.RTI, _IMP, 6),

    # Unofficial NOP (ABS,X). A page cross costs one more cycle, as for any indexed access.
    0x1C: (Op.NOP, _ABX, 4), 0x3C: (Op.NOP, _ABX, 4), 0x5C: (Op.NOP, _ABX, 4),
    0x7C: (Op.NOP, _ABX, 4), 0xDC: (Op.NOP, _ABX, 4), 0xFC: (Op.NOP, _ABX, 4),
}

# @intent:responsibility OPCODE_MAPから256エントリの不変テーブルを構築する。未定義は ILLEGAL。
def _build_table() -> Tuple[Instruction, ...]:
    table = []
    for opcode in range(0x100):
        entry = OPCODE_MAP.get(opcode)
        if entry is None:
            table.append(ILLEGAL)
            continue
        op, mode, cycles = entry
        table.append(Instruction(op.value, op, mode, cycles))
    return tuple(table)

OPCODE_TABLE: Tuple[Instruction, ...] = _build_table()

# @intent:responsibility アドレッシングモード解決と命令実行を行い、基本サイクルを超える追加サイクル数を返す。
# @intent:note インデックス加算でページを跨いだ場合は、読み出し・書き込みを問わず常に+1する。
def execute_instruction(instruction: Instruction, state: Mos6502CpuState, bus: Bus, ctx: ExecutionContext) -> int:
    ctx.addr_mode = instruction.addr_mode
    page_crossed = base.ADDRESSING_MODES[instruction.addr_mode](state, bus, ctx)
    operation_cycles = OPERATIONS[instruction.operation](state, bus, ctx)
    return page_crossed + operation_cycles
