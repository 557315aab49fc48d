# tests/arch/mos6502/test_mos6502_control.py
import unittest
from retro6502.transport.bus import create_flat_bus
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions.base import ExecutionContext
from retro6502.arch.mos6502.instructions.maps import OPCODE_TABLE, execute_instruction

class TestMos6502ControlInstructions(unittest.TestCase):
    def setUp(self):
        self.bus = create_flat_bus()
        self.state = Mos6502CpuState(sp=0xFD, p=Mos6502CpuState.U_FLAG)

    def _execute(self, opcode, operands=(), at=0x0200):
        self.bus.write(at, opcode)
        for i, b in enumerate(operands):
            self.bus.write(at + 1 + i, b)
        self.state.pc = at + 1

        instruction = OPCODE_TABLE[opcode]
        ctx = ExecutionContext(opcode=opcode)
        return instruction.cycles + execute_instruction(instruction, self.state, self.bus, ctx)

    # --- Branch ---

    def test_branch_not_taken(self):
        self.state.set_flag(Mos6502CpuState.Z_FLAG, True)
        # BNE +2
        cycles = self._execute(0xD0, [0x02])
        self.assertEqual(self.state.pc, 0x0202)
        self.assertEqual(cycles, 2)

    def test_branch_taken_same_page(self):
        # BNE +2
        cycles = self._execute(0xD0, [0x02])
        self.assertEqual(self.state.pc, 0x0204)
        self.assertEqual(cycles, 3)

    def test_branch_taken_backward_page_cross(self):
        # BNE -4 from $0202 -> $01FE
        cycles = self._execute(0xD0, [0xFC])
        self.assertEqual(self.state.pc, 0x01FE)
        self.assertEqual(cycles, 4)

    # @intent:note ページ判定は分岐命令の直後のPCと比較する。
    def test_branch_page_compared_with_next_pc(self):
        # BEQ at $02FE, next PC is $0300, target $0310 stays on page $03.
        self.state.set_flag(Mos6502CpuState.Z_FLAG, True)
        cycles = self._execute(0xF0, [0x10], at=0x02FE)
        self.assertEqual(self.state.pc, 0x0310)
        self.assertEqual(cycles, 3)

    def test_each_branch_condition(self):
        cases = [
            (0x90, Mos6502CpuState.C_FLAG, False),  # BCC
            (0xB0, Mos6502CpuState.C_FLAG, True),   # BCS
            (0xF0, Mos6502CpuState.Z_FLAG, True),   # BEQ
            (0xD0, Mos6502CpuState.Z_FLAG, False),  # BNE
            (0x30, Mos6502CpuState.N_FLAG, True),   # BMI
            (0x10, Mos6502CpuState.N_FLAG, False),  # BPL
            (0x70, Mos6502CpuState.V_FLAG, True),   # BVS
            (0x50, Mos6502CpuState.V_FLAG, False),  # BVC
        ]
        for opcode, mask, taken_when in cases:
            with self.subTest(opcode=f"{opcode:02X}"):
                self.state.p = Mos6502CpuState.U_FLAG
                self.state.set_flag(mask, taken_when)
                self._execute(opcode, [0x10])
                self.assertEqual(self.state.pc, 0x0212)

                self.state.set_flag(mask, not taken_when)
                self._execute(opcode, [0x10])
                self.assertEqual(self.state.pc, 0x0202)

    # --- Jump / Subroutine ---

    def test_jmp_absolute(self):
        cycles = self._execute(0x4C, [0x34, 0x12])
        self.assertEqual(self.state.pc, 0x1234)
        self.assertEqual(cycles, 3)

    def test_jmp_indirect_page_wrap_bug(self):
        self.bus.write(0x10FF, 0x34)
        self.bus.write(0x1000, 0x12)
        self.bus.write(0x1100, 0x56)
        # JMP ($10FF): high byte comes from $1000, not $1100
        cycles = self._execute(0x6C, [0xFF, 0x10])
        self.assertEqual(self.state.pc, 0x1234)
        self.assertEqual(cycles, 5)

    def test_jmp_indirect(self):
        self.bus.write(0x1010, 0x00)
        self.bus.write(0x1011, 0x90)
        self._execute(0x6C, [0x10, 0x10])
        self.assertEqual(self.state.pc, 0x9000)

    def test_jsr_rts(self):
        # JSR $9000 at $0200
        cycles = self._execute(0x20, [0x00, 0x90])
        self.assertEqual(self.state.pc, 0x9000)
        self.assertEqual(self.state.sp, 0xFB)
        self.assertEqual(self.bus.read(0x01FD), 0x02) # high byte of $0202
        self.assertEqual(self.bus.read(0x01FC), 0x02) # low byte of $0202
        self.assertEqual(cycles, 6)

        cycles = self._execute(0x60, at=0x9000)
        self.assertEqual(self.state.pc, 0x0203)
        self.assertEqual(self.state.sp, 0xFD)
        self.assertEqual(cycles, 6)

    # --- Stack ---

    def test_pha_pla_round_trip(self):
        self.state.a = 0x80
        self._execute(0x48) # PHA
        self.assertEqual(self.state.sp, 0xFC)
        self.assertEqual(self.bus.read(0x01FD), 0x80)

        self.state.a = 0x00
        cycles = self._execute(0x68) # PLA
        self.assertEqual(self.state.a, 0x80)
        self.assertEqual(self.state.sp, 0xFD)
        self.assertTrue(self.state.flag_n)
        self.assertEqual(cycles, 4)

    def test_stack_pointer_wraps(self):
        self.state.sp = 0x00
        self.state.a = 0x11
        self._execute(0x48)
        self.assertEqual(self.bus.read(0x0100), 0x11)
        self.assertEqual(self.state.sp, 0xFF)
        self._execute(0x68)
        self.assertEqual(self.state.sp, 0x00)

    def test_php_pushes_break_and_unused(self):
        self.state.p = Mos6502CpuState.U_FLAG | Mos6502CpuState.C_FLAG
        self._execute(0x08) # PHP
        self.assertEqual(self.bus.read(0x01FD), 0x31)
        self.assertEqual(self.state.p, 0x21) # register itself unchanged

    def test_plp_clears_break_sets_unused(self):
        self.bus.write(0x01FE, 0xFF)
        self.state.sp = 0xFD
        self._execute(0x28) # PLP
        self.assertEqual(self.state.p, 0xEF)

        self.bus.write(0x01FF, 0x00)
        self._execute(0x28)
        self.assertEqual(self.state.p, 0x20)

    # --- Flags ---

    def test_flag_instructions(self):
        pairs = [
            (0x38, 0x18, Mos6502CpuState.C_FLAG),  # SEC / CLC
            (0x78, 0x58, Mos6502CpuState.I_FLAG),  # SEI / CLI
            (0xF8, 0xD8, Mos6502CpuState.D_FLAG),  # SED / CLD
        ]
        for set_op, clear_op, mask in pairs:
            with self.subTest(mask=mask):
                self.state.p = 0x20
                self._execute(set_op)
                self.assertEqual(self.state.p, 0x20 | mask)
                self._execute(clear_op)
                self.assertEqual(self.state.p, 0x20)

    def test_clv(self):
        self.state.p = 0xFF
        self._execute(0xB8)
        self.assertEqual(self.state.p, 0xBF)

    # --- System ---

    def test_brk_and_rti(self):
        self.bus.write(0xFFFE, 0x00)
        self.bus.write(0xFFFF, 0x90)
        self.state.p = 0x20 | Mos6502CpuState.C_FLAG

        cycles = self._execute(0x00) # BRK at $0200
        self.assertEqual(self.state.pc, 0x9000)
        self.assertTrue(self.state.flag_i)
        self.assertEqual(self.state.sp, 0xFA)
        self.assertEqual(self.bus.read(0x01FD), 0x02) # return address $0202 (high)
        self.assertEqual(self.bus.read(0x01FC), 0x02) # (low)
        self.assertEqual(self.bus.read(0x01FB), 0x31) # P | B | U
        self.assertEqual(cycles, 7)

        cycles = self._execute(0x40, at=0x9000) # RTI
        self.assertEqual(self.state.pc, 0x0202)
        self.assertEqual(self.state.sp, 0xFD)
        self.assertEqual(self.state.p, Mos6502CpuState.C_FLAG) # B and U cleared
        self.assertEqual(cycles, 6)

    def test_nop(self):
        self.state.a = 0x12
        cycles = self._execute(0xEA)
        self.assertEqual(self.state.pc, 0x0201)
        self.assertEqual(self.state.a, 0x12)
        self.assertEqual(cycles, 2)

    def test_unofficial_nop_absolute_x(self):
        self.state.x = 0x00
        self.assertEqual(self._execute(0x1C, [0xFF, 0x80]), 4)
        self.assertEqual(self.state.pc, 0x0203)

        self.state.x = 0x01
        self.assertEqual(self._execute(0xFC, [0xFF, 0x80]), 5)

    def test_illegal_opcode_is_noop(self):
        self.state.a = 0x12
        before = self.state.copy()
        cycles = self._execute(0x02)
        self.assertEqual(cycles, 0)
        self.assertEqual(self.state.a, before.a)
        self.assertEqual(self.state.p, before.p)
        self.assertEqual(self.state.pc, 0x0201)

if __name__ == '__main__':
    unittest.main()
