# retro6502/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの状態管理とクロック駆動の命令サイクルに関する抽象化を提供します。
具体的な命令の振る舞いはアーキテクチャ層（arch）に移譲されます。
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from retro6502.transport.bus import Bus
from retro6502.core.snapshot import Snapshot, Operation, Metadata
from retro6502.core.state import CpuState

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、サイクルカウンタ、clock/step の駆動ロジックを提供します。
    """
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycles_remaining: int = 0
        self._total_cycles: int = 0
        self._last_operation: Optional[Operation] = None
        self._last_address: int = 0

    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態（全レジスタ0）を生成して返します。
        """
        pass

    # @intent:responsibility 1命令をフェッチ・デコード・実行し、その命令が要するサイクル数を返します。
    @abstractmethod
    def _execute_next(self) -> int:
        pass

    @abstractmethod
    def reset(self) -> None:
        pass

    @abstractmethod
    def irq(self) -> None:
        pass

    @abstractmethod
    def nmi(self) -> None:
        pass

    # @intent:responsibility 現在のCPUの状態（コピー）を返します。
    def get_state(self) -> CpuState:
        return self._state.copy()

    @property
    def cycles_remaining(self) -> int:
        return self._cycles_remaining

    @property
    def total_cycles(self) -> int:
        return self._total_cycles

    # @intent:responsibility 命令境界にいるかどうか（割り込みを注入してよいか）を返します。
    def complete(self) -> bool:
        return self._cycles_remaining == 0

    # @intent:responsibility 1クロック進めます。残りサイクルが0のときだけ次の命令を実行します。
    # @intent:post-condition _cycles_remaining は負にならない。
    def clock(self) -> None:
        if self._cycles_remaining == 0:
            # フェッチサイクル自体は必ず消費するため、最低1サイクルとして扱う。
            self._cycles_remaining = max(self._execute_next(), 1)
        self._cycles_remaining -= 1
        self._total_cycles += 1

    # @intent:responsibility ちょうど1命令分クロックを進め、その結果のスナップショットを返します。
    # @intent:rationale リセットや割り込み直後の待ちサイクルは、先に消化してから次の命令に入ります。
    def step(self) -> Snapshot:
        """
        保留中のサイクルを消化したうえで次の命令を1つ完了させ、Snapshotを返します。
        """
        while not self.complete():
            self.clock()

        self._bus.get_and_clear_activity_log()
        self.clock()
        while not self.complete():
            self.clock()

        return Snapshot(
            state=self.get_state(),
            operation=self._last_operation,
            metadata=Metadata(cycle_count=self._total_cycles, address=self._last_address),
            bus_activity=self._bus.get_and_clear_activity_log()
        )

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        """
        現在のフラグ（ステータスレジスタ）の各ビットの状態を辞書形式で返す。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, stop_addr: int) -> List[Tuple[int, str]]:
        """
        指定されたメモリ範囲（両端を含む）を逆アセンブルし、(address, text) のリストを返す。
        """
        pass
