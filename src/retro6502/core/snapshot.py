# retro6502/core/snapshot.py
"""
実行状態の不変スナップショット

1命令の実行結果（命令の内容、累計サイクル数、バスアクセス）を記録する
不変のデータ構造を定義します。
"""
from dataclasses import dataclass, field
from typing import List

from retro6502.core.state import CpuState
from retro6502.transport.bus import BusAccess

# @intent:responsibility 実行された命令の詳細を記録します。
@dataclass(frozen=True)
class Operation:
    """
    実行された命令の詳細（HEX、ニーモニック、オペランド）を記録するデータクラス。
    """
    opcode_hex: str # 例: "A9"
    mnemonic: str # 例: "LDA"
    operands: List[str] = field(default_factory=list) # 例: ["#$0A"]
    operand_bytes: List[int] = field(default_factory=list)
    cycle_count: int = 0 # ページクロス・分岐ペナルティを含む実サイクル数
    length: int = 1 # 命令のバイト長

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    cycle_count: int # 累計サイクル数
    address: int = 0 # 命令の先頭アドレス

# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    1命令の実行直後における、CPU状態のコピーとその命令中のバスアクセス。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
