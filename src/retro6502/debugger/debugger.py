# retro6502/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を命令単位で制御し、ユーザーが指定した条件（ブレークポイント）や
自己ループ（トラップ）を検出して実行を中断させる責務を負います。
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from retro6502.core.cpu import AbstractCpu
from retro6502.core.snapshot import Snapshot
from retro6502.core.state import CpuState
from retro6502.transport.bus import BusAccessType

logger = logging.getLogger(__name__)

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    register_name は状態のフィールド名 ("a", "x", "y", "pc", "sp", "p") を指定します。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用
    enabled: bool = True                  # 有効/無効状態

# @intent:responsibility run() が停止した理由を表します。
class StopReason(Enum):
    BREAKPOINT = "BREAKPOINT"
    TRAP = "TRAP"
    STEP_LIMIT = "STEP_LIMIT"

# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントの管理を行うクラス。
    割り込みやリセットは必ず命令境界 (cpu.complete()) で注入します。
    """
    def __init__(self, cpu: AbstractCpu):
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._previous_state: CpuState = self._cpu.get_state()
        self._last_snapshot: Optional[Snapshot] = None

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        """
        ブレークポイント条件を追加します。同一条件は重複登録しません。
        """
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        """
        既存のブレークポイントを更新します。有効/無効の切り替えにも使います。
        """
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def _pc_breakpoint_hit(self, pc: int) -> bool:
        for bp in self._breakpoints:
            if bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc:
                return True
        return False

    def _check_other_breakpoints(self, snapshot: Snapshot) -> bool:
        """
        Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current_state = snapshot.state

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_READ:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.READ and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.WRITE and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name and hasattr(current_state, bp.register_name):
                    if getattr(current_state, bp.register_name) == bp.value:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                if bp.register_name and hasattr(current_state, bp.register_name):
                    if getattr(current_state, bp.register_name) != getattr(self._previous_state, bp.register_name):
                        return True
        return False

    def step_instruction(self) -> Snapshot:
        """
        CPUを1命令分実行し、その結果のSnapshotを返します。
        リセット直後などの保留サイクルは先に消化されます。
        """
        self._previous_state = self._cpu.get_state()
        snapshot = self._cpu.step()
        self._last_snapshot = snapshot
        return snapshot

    # @intent:responsibility ブレークポイント、トラップ、またはステップ上限まで命令を実行します。
    # @intent:note 開始時点のPCにあるPCブレークポイントでは止まらず、最低1命令は進めます。
    def run(self, max_instructions: int) -> StopReason:
        for _ in range(max_instructions):
            snapshot = self.step_instruction()

            if snapshot.state.pc == snapshot.metadata.address:
                logger.info("trap detected at PC: %#06x", snapshot.state.pc)
                return StopReason.TRAP

            if self._check_other_breakpoints(snapshot) or self._pc_breakpoint_hit(snapshot.state.pc):
                logger.info("breakpoint hit at PC: %#06x", snapshot.state.pc)
                return StopReason.BREAKPOINT

        return StopReason.STEP_LIMIT

    # @intent:responsibility 実行途中の命令を完了させ、命令境界に揃えます。
    def _finish_instruction(self) -> None:
        while not self._cpu.complete():
            self._cpu.clock()

    def reset(self) -> None:
        self._finish_instruction()
        self._cpu.reset()

    def irq(self) -> None:
        self._finish_instruction()
        self._cpu.irq()

    def nmi(self) -> None:
        self._finish_instruction()
        self._cpu.nmi()
