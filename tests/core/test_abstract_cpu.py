# tests/core/test_abstract_cpu.py
"""
retro6502.core.cpuモジュールの単体テスト。
clock/complete/step のサイクル駆動ロジックを、固定サイクルの最小CPUで検証します。
"""
import pytest
from typing import Dict, List, Tuple

from retro6502.core.state import CpuState
from retro6502.core.cpu import AbstractCpu
from retro6502.core.snapshot import Snapshot, Operation
from retro6502.transport.bus import Bus, RAM, BusAccessType

# @intent:test_suite CPUの状態管理と抽象CPUの基本的な動作を検証します。

class StubCpu(AbstractCpu):
    """
    1バイト命令のみを持つテスト用CPU。オペコードの値をそのままサイクル数として扱い、
    実行のたびに $0020 へ 0xFF を書き込みます。
    """
    def __init__(self, bus: Bus, initial_pc: int = 0x0000, initial_sp: int = 0x0000):
        self._initial_pc = initial_pc
        self._initial_sp = initial_sp
        super().__init__(bus)
        self.executed = 0

    def _create_initial_state(self) -> CpuState:
        return CpuState(pc=self._initial_pc, sp=self._initial_sp)

    def _execute_next(self) -> int:
        self._last_address = self._state.pc
        opcode = self._bus.read(self._state.pc)
        self._state.pc += 1
        self._bus.write(0x0020, 0xFF)
        self.executed += 1
        self._last_operation = Operation(opcode_hex=f"{opcode:02X}", mnemonic="NOP", cycle_count=opcode)
        return opcode

    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycles_remaining = 3

    def irq(self) -> None:
        pass

    def nmi(self) -> None:
        pass

    def get_register_map(self) -> Dict[str, int]:
        return {"PC": self._state.pc, "SP": self._state.sp}

    def get_flag_state(self) -> Dict[str, bool]:
        return {"Z": False}

    def disassemble(self, start_addr: int, stop_addr: int) -> List[Tuple[int, str]]:
        return [(addr, "NOP") for addr in range(start_addr, stop_addr + 1)]

class TestCpuState:
    """
    CpuStateの単体テスト。
    """
    def test_cpu_state_init_default(self):
        state = CpuState()
        assert state.pc == 0x0000
        assert state.sp == 0x0000

    # @intent:test_case_copy copy()が独立したインスタンスを返すことを検証します。
    def test_cpu_state_copy_is_independent(self):
        state = CpuState(pc=0x1234, sp=0xFD)
        clone = state.copy()
        clone.pc = 0x0000
        assert state.pc == 0x1234
        assert clone == CpuState(pc=0x0000, sp=0xFD)

class TestAbstractCpu:
    """
    AbstractCpuの具象メソッドのテスト。
    """
    @pytest.fixture
    def setup_cpu(self):
        bus = Bus()
        ram = RAM(256)
        bus.register_device(0x0000, 0x00FF, ram)
        cpu = StubCpu(bus, initial_pc=0x0010, initial_sp=0x00F0)
        return cpu, bus, ram

    def test_abstract_cpu_init(self, setup_cpu):
        cpu, _, _ = setup_cpu
        assert cpu.get_state().pc == 0x0010
        assert cpu.cycles_remaining == 0
        assert cpu.total_cycles == 0
        assert cpu.complete()

    # @intent:test_case_get_state get_state()はコピーを返し、変更しても内部状態に影響しないことを検証します。
    def test_abstract_cpu_get_state_returns_copy(self, setup_cpu):
        cpu, _, _ = setup_cpu
        state = cpu.get_state()
        state.pc = 0x3333
        assert cpu.get_state().pc == 0x0010

    # @intent:test_case_clock 命令は残りサイクルが0のときだけ実行され、その後はサイクルを消化するだけであることを検証します。
    def test_clock_executes_only_on_boundary(self, setup_cpu):
        cpu, bus, _ = setup_cpu
        bus.write(0x0010, 3)

        cpu.clock()
        assert cpu.executed == 1
        assert cpu.cycles_remaining == 2
        assert not cpu.complete()

        cpu.clock()
        cpu.clock()
        assert cpu.executed == 1
        assert cpu.complete()
        assert cpu.total_cycles == 3

    # @intent:test_case_zero_cycle 0サイクルの命令もフェッチの1サイクルは消費し、残りサイクルが負にならないことを検証します。
    def test_clock_zero_cycle_instruction(self, setup_cpu):
        cpu, _, _ = setup_cpu
        # RAMは0初期化なので、オペコード0 = 0サイクル
        cpu.clock()
        assert cpu.cycles_remaining == 0
        assert cpu.total_cycles == 1
        cpu.clock()
        assert cpu.executed == 2

    # @intent:test_case_step step()が保留サイクルを先に消化し、1命令分のSnapshotを返すことを検証します。
    def test_abstract_cpu_step(self, setup_cpu):
        cpu, bus, _ = setup_cpu
        bus.write(0x0010, 2)
        cpu.reset() # 3サイクルの保留
        bus.get_and_clear_activity_log()

        snapshot = cpu.step()

        assert isinstance(snapshot, Snapshot)
        assert cpu.executed == 1
        assert cpu.complete()
        assert cpu.total_cycles == 3 + 2
        assert snapshot.state == cpu.get_state()
        assert snapshot.state.pc == 0x0011
        assert snapshot.operation.opcode_hex == "02"
        assert snapshot.metadata.cycle_count == 5
        assert snapshot.metadata.address == 0x0010

        assert len(snapshot.bus_activity) == 2
        assert snapshot.bus_activity[0].address == 0x0010
        assert snapshot.bus_activity[0].access_type == BusAccessType.READ
        assert snapshot.bus_activity[1].address == 0x0020
        assert snapshot.bus_activity[1].data == 0xFF
        assert snapshot.bus_activity[1].access_type == BusAccessType.WRITE
