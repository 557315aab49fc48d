# retro6502/config/models.py
"""
システム構成 (YAML) を表すデータモデル。
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

@dataclass
class MemoryRegion:
    start: int
    end: int
    type: str  # "RAM", "ROM"
    label: str = ""

@dataclass
class ProgramImage:
    path: str
    format: str = "binary"  # "binary", "ihex", "srec"
    origin: Optional[int] = None  # binary のみ必須

@dataclass
class SystemConfig:
    memory_map: List[MemoryRegion] = field(default_factory=list)
    programs: List[ProgramImage] = field(default_factory=list)
    vectors: Dict[str, int] = field(default_factory=dict)  # "reset", "irq", "nmi"
