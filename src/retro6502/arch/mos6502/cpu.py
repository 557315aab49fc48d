# src/retro6502/arch/mos6502/cpu.py
"""
MOS 6502 CPUエミュレーションの中心モジュール。
"""
import logging
from typing import Dict, List, Tuple

from retro6502.core.snapshot import Operation
from retro6502.core.cpu import AbstractCpu
from retro6502.transport.bus import Bus
from retro6502.arch.mos6502 import disassembler
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions.base import ExecutionContext, push_word, push, read_word
from retro6502.arch.mos6502.instructions.maps import OPCODE_TABLE, Instruction, execute_instruction

logger = logging.getLogger(__name__)

RESET_VECTOR = 0xFFFC
IRQ_VECTOR = 0xFFFE
NMI_VECTOR = 0xFFFA

RESET_CYCLES = 8
IRQ_CYCLES = 7
NMI_CYCLES = 8

# @intent:responsibility MOS 6502 CPUの具体的なエミュレーションロジックを提供する。
class Mos6502Cpu(AbstractCpu):
    """
    MOS 6502 CPUをエミュレートするクラス。

    構築直後のレジスタはすべて0。最初の clock() の前に reset() を呼ぶこと。
    """
    def __init__(self, bus: Bus):
        super().__init__(bus)
        self._ctx = ExecutionContext()

    def _create_initial_state(self) -> Mos6502CpuState:
        return Mos6502CpuState()

    # --- Read-only register views ---

    @property
    def a(self) -> int:
        return self._state.a

    @property
    def x(self) -> int:
        return self._state.x

    @property
    def y(self) -> int:
        return self._state.y

    @property
    def pc(self) -> int:
        return self._state.pc

    @property
    def sp(self) -> int:
        return self._state.sp

    @property
    def p(self) -> int:
        return self._state.p

    def get_flag(self, mask: int) -> bool:
        return self._state.get_flag(mask)

    # @intent:responsibility 1命令をフェッチ・デコード・実行し、総サイクル数を返す。
    # @intent:invariant 実行前後でUフラグは常に1。
    def _execute_next(self) -> int:
        state = self._state
        self._last_address = state.pc

        opcode = self._bus.read(state.pc)
        state.pc = (state.pc + 1) & 0xFFFF
        instruction = OPCODE_TABLE[opcode]

        state.set_flag(state.U_FLAG, True)
        self._ctx = ExecutionContext(opcode=opcode)
        cycles = instruction.cycles + execute_instruction(instruction, state, self._bus, self._ctx)
        state.set_flag(state.U_FLAG, True)

        self._last_operation = self._build_operation(opcode, instruction, cycles)
        return cycles

    # @intent:responsibility 実行した命令の記録を組み立てる。オペランドはログを汚さないようpeekで読み直す。
    def _build_operation(self, opcode: int, instruction: Instruction, cycles: int) -> Operation:
        address = self._last_address
        operand_bytes = [self._bus.peek((address + i) & 0xFFFF) for i in range(1, instruction.length)]
        next_pc = (address + instruction.length) & 0xFFFF
        operand_text = disassembler.format_operand(instruction.addr_mode, operand_bytes, next_pc)
        return Operation(
            opcode_hex=f"{opcode:02X}",
            mnemonic=instruction.mnemonic,
            operands=[operand_text] if operand_text else [],
            operand_bytes=operand_bytes,
            cycle_count=cycles,
            length=instruction.length,
        )

    # @intent:responsibility リセット処理。リセットベクタからPCを読み込む。
    # @intent:post-condition SP=0xFD, P=U, A=X=Y=0, 8サイクル待ち。実行途中の命令は破棄される。
    def reset(self) -> None:
        state = self._state
        state.pc = read_word(self._bus, RESET_VECTOR)
        state.a = 0
        state.x = 0
        state.y = 0
        state.sp = 0xFD
        state.p = state.U_FLAG

        self._ctx = ExecutionContext()
        self._cycles_remaining = RESET_CYCLES
        logger.debug("reset: PC=$%04X", state.pc)

    # @intent:responsibility 割り込み共通のエントリ処理 (PC, P を積んでベクタへ飛ぶ)。
    # @intent:note Pは B=0, U=1 で積み、Iを立てるのは積んだ後。
    def _enter_interrupt(self, vector: int, cycles: int) -> None:
        state = self._state
        push_word(state, self._bus, state.pc)
        state.set_flag(state.B_FLAG, False)
        state.set_flag(state.U_FLAG, True)
        push(state, self._bus, state.p)
        state.set_flag(state.I_FLAG, True)
        state.pc = read_word(self._bus, vector)
        self._cycles_remaining = cycles

    # @intent:responsibility マスク可能割り込み。Iフラグがセットされていれば何もしない。
    def irq(self) -> None:
        if self._state.flag_i:
            return
        self._enter_interrupt(IRQ_VECTOR, IRQ_CYCLES)

    # @intent:responsibility マスク不可割り込み。
    def nmi(self) -> None:
        self._enter_interrupt(NMI_VECTOR, NMI_CYCLES)

    # @intent:responsibility レジスタマップを返す。
    def get_register_map(self) -> Dict[str, int]:
        state = self._state
        return {
            "A": state.a,
            "X": state.x,
            "Y": state.y,
            "PC": state.pc,
            "SP": state.sp,
            "P": state.p,
        }

    # @intent:responsibility フラグ状態を返す。
    def get_flag_state(self) -> Dict[str, bool]:
        state = self._state
        return {
            "N": state.flag_n,
            "V": state.flag_v,
            "U": state.flag_u,
            "B": state.flag_b,
            "D": state.flag_d,
            "I": state.flag_i,
            "Z": state.flag_z,
            "C": state.flag_c,
        }

    # @intent:responsibility 指定範囲の逆アセンブル結果を返す。
    def disassemble(self, start_addr: int, stop_addr: int) -> List[Tuple[int, str]]:
        return disassembler.disassemble(self._bus, start_addr, stop_addr)
