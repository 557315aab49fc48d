# tests/arch/mos6502/test_mos6502_cpu.py
"""
Mos6502Cpu (フェッチ・実行の状態機械、リセット、サイクル計算) の単体テスト。
"""
import pytest
from retro6502.transport.bus import Bus, RAM, ROM, create_flat_bus
from retro6502.arch.mos6502.cpu import Mos6502Cpu
from retro6502.arch.mos6502.state import Mos6502CpuState

@pytest.fixture
def cpu():
    bus = create_flat_bus()
    return Mos6502Cpu(bus)

def load_and_reset(cpu, program, origin=0x8000):
    bus = cpu._bus
    bus.load_bytes(origin, bytes(program))
    bus.load(0xFFFC, origin & 0xFF)
    bus.load(0xFFFD, (origin >> 8) & 0xFF)
    cpu.reset()

def test_initial_registers_are_zero(cpu):
    assert (cpu.a, cpu.x, cpu.y, cpu.pc, cpu.sp, cpu.p) == (0, 0, 0, 0, 0, 0)
    assert cpu.complete()

# @intent:test_case_reset リセット後の状態が決定的であることを検証します。
def test_reset_state(cpu):
    load_and_reset(cpu, [0xEA])
    assert cpu.pc == 0x8000
    assert cpu.sp == 0xFD
    assert cpu.p == Mos6502CpuState.U_FLAG
    assert (cpu.a, cpu.x, cpu.y) == (0, 0, 0)
    assert cpu.cycles_remaining == 8
    assert not cpu.complete()

def test_reset_is_deterministic(cpu):
    load_and_reset(cpu, [0xA9, 0x42, 0xA2, 0x10, 0x38])
    first = cpu.get_state()
    for _ in range(3):
        cpu.step()
    cpu.reset()
    assert cpu.get_state() == first
    assert cpu.cycles_remaining == 8

def test_reset_discards_in_flight_instruction(cpu):
    load_and_reset(cpu, [0xEA])
    cpu.step()
    cpu._bus.load(0x8001, 0x00)
    cpu.clock() # BRK starts, 6 cycles pending
    assert not cpu.complete()
    cpu.reset()
    assert cpu.cycles_remaining == 8
    assert cpu.pc == 0x8000

# @intent:test_case_clock 命令は残りサイクルが0になったクロックでのみ実行されることを検証します。
def test_clock_runs_reset_cycles_before_first_fetch(cpu):
    load_and_reset(cpu, [0xA9, 0x42])
    for _ in range(8):
        cpu.clock()
    assert cpu.complete()
    assert cpu.a == 0x00

    cpu.clock() # fetch + execute LDA
    assert cpu.a == 0x42
    assert cpu.pc == 0x8002
    assert cpu.cycles_remaining == 1
    cpu.clock()
    assert cpu.complete()
    assert cpu.total_cycles == 10

def test_unused_flag_forced_after_instruction(cpu):
    load_and_reset(cpu, [0xEA])
    cpu._state.p = 0x00
    cpu.step()
    assert cpu.get_flag(Mos6502CpuState.U_FLAG)

def test_step_snapshot(cpu):
    load_and_reset(cpu, [0xA2, 0x0A, 0x8E, 0x00, 0x02])
    snapshot = cpu.step()
    assert snapshot.operation.mnemonic == "LDX"
    assert snapshot.operation.opcode_hex == "A2"
    assert snapshot.operation.operands == ["#$0A"]
    assert snapshot.operation.operand_bytes == [0x0A]
    assert snapshot.operation.cycle_count == 2
    assert snapshot.operation.length == 2
    assert snapshot.metadata.address == 0x8000
    assert snapshot.metadata.cycle_count == 8 + 2
    assert snapshot.state.x == 0x0A

    snapshot = cpu.step()
    assert snapshot.operation.mnemonic == "STX"
    assert snapshot.operation.operands == ["$0200"]
    # opcode, operand lo, operand hi, then the store
    assert [a.address for a in snapshot.bus_activity] == [0x8002, 0x8003, 0x8004, 0x0200]
    assert snapshot.bus_activity[-1].data == 0x0A

def test_page_cross_read_penalty(cpu):
    # LDX #$20 ; LDA $80F0,X ; LDX #$01 ; LDA $80F0,X
    load_and_reset(cpu, [0xA2, 0x20, 0xBD, 0xF0, 0x80, 0xA2, 0x01, 0xBD, 0xF0, 0x80])
    cpu.step()
    assert cpu.step().operation.cycle_count == 5
    cpu.step()
    assert cpu.step().operation.cycle_count == 4

def test_store_page_cross_adds_cycle(cpu):
    # LDX #$20 ; STA $80F0,X ; INC $80F0,X ; LDY #$20 ; STA ($10),Y
    load_and_reset(cpu, [0xA2, 0x20, 0x9D, 0xF0, 0x80, 0xFE, 0xF0, 0x80, 0xA0, 0x20, 0x91, 0x10])
    cpu._bus.load(0x0010, 0xF0)
    cpu._bus.load(0x0011, 0x80)
    cpu.step()
    assert cpu.step().operation.cycle_count == 5 + 1
    assert cpu.step().operation.cycle_count == 7 + 1
    cpu.step()
    assert cpu.step().operation.cycle_count == 6 + 1

def test_branch_cycles(cpu):
    # $80F0: LDA #$00 ; BEQ +$20 (-> $8114, crosses to page $81) ; ...
    load_and_reset(cpu, [0xA9, 0x00, 0xF0, 0x20], origin=0x80F0)
    cpu.step()
    snapshot = cpu.step()
    assert cpu.pc == 0x8114
    assert snapshot.operation.cycle_count == 4

def test_branch_not_taken_and_taken(cpu):
    # LDA #$00 ; BNE +2 ; BEQ +2 ; NOP ; NOP ; NOP
    load_and_reset(cpu, [0xA9, 0x00, 0xD0, 0x02, 0xF0, 0x02, 0xEA, 0xEA, 0xEA])
    cpu.step()
    assert cpu.step().operation.cycle_count == 2
    assert cpu.pc == 0x8004
    assert cpu.step().operation.cycle_count == 3
    assert cpu.pc == 0x8008

# @intent:test_case_illegal 未定義オペコードはPCを1進めるだけで、フェッチの1サイクルを消費することを検証します。
def test_illegal_opcode_consumes_fetch_cycle(cpu):
    load_and_reset(cpu, [0x02, 0xEA])
    snapshot = cpu.step()
    assert snapshot.operation.mnemonic == "???"
    assert snapshot.operation.cycle_count == 0
    assert snapshot.metadata.cycle_count == 8 + 1
    assert cpu.pc == 0x8001
    assert cpu.cycles_remaining == 0
    assert cpu.p == Mos6502CpuState.U_FLAG

def test_rom_program_runs_and_stack_in_ram():
    bus = Bus()
    bus.register_device(0x0000, 0x7FFF, RAM(0x8000))
    bus.register_device(0x8000, 0xFFFF, ROM(0x8000))
    cpu = Mos6502Cpu(bus)
    # LDA #$42 ; PHA ; STA $8000 (ignored by ROM)
    load_and_reset(cpu, [0xA9, 0x42, 0x48, 0x8D, 0x00, 0x80])
    for _ in range(3):
        cpu.step()
    assert bus.read(0x01FD) == 0x42
    assert bus.read(0x8000) == 0xA9

def test_register_and_flag_maps(cpu):
    load_and_reset(cpu, [0x38])
    cpu.step()
    assert cpu.get_register_map() == {"A": 0, "X": 0, "Y": 0, "PC": 0x8001, "SP": 0xFD, "P": 0x21}
    flags = cpu.get_flag_state()
    assert flags["C"] is True
    assert flags["U"] is True
    assert flags["Z"] is False
    assert set(flags) == {"N", "V", "U", "B", "D", "I", "Z", "C"}

def test_get_state_is_a_copy(cpu):
    load_and_reset(cpu, [0xEA])
    state = cpu.get_state()
    state.a = 0x99
    assert cpu.a == 0x00
