# retro6502/config/builder.py
"""
システム構成からBus、デバイス、CPUを組み立てます。
"""
import logging
import os
from typing import Optional, Tuple

from retro6502.transport.bus import Bus, RAM, ROM, create_flat_bus
from retro6502.arch.mos6502.cpu import Mos6502Cpu, RESET_VECTOR, IRQ_VECTOR, NMI_VECTOR
from retro6502.loader.loader import load_program
from .models import SystemConfig

logger = logging.getLogger(__name__)

VECTOR_ADDRESSES = {
    "reset": RESET_VECTOR,
    "irq": IRQ_VECTOR,
    "nmi": NMI_VECTOR,
}

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: SystemConfig, base_dir: Optional[str] = None) -> Tuple[Mos6502Cpu, Bus]:
        """
        Busを構築してプログラムとベクタを配置し、リセット済みのCPUと共に返します。
        メモリマップが空の場合は64KiB全域RAMのバスを使います。
        """
        bus = self._build_bus(config)

        for program in config.programs:
            path = program.path
            if base_dir and not os.path.isabs(path):
                path = os.path.join(base_dir, path)
            try:
                load_program(bus, path, program.format, program.origin)
            except IndexError as e:
                raise ValueError(f"Program '{program.path}' touches an unmapped address: {e}") from e

        for name, target in config.vectors.items():
            vector = VECTOR_ADDRESSES[name]
            try:
                bus.load(vector, target & 0xFF)
                bus.load(vector + 1, (target >> 8) & 0xFF)
            except IndexError as e:
                raise ValueError(f"Vector '{name}' at ${vector:04X} is not mapped to any device.") from e

        cpu = Mos6502Cpu(bus)
        cpu.reset()
        return cpu, bus

    def _build_bus(self, config: SystemConfig) -> Bus:
        if not config.memory_map:
            return create_flat_bus()

        bus = Bus()
        for region in config.memory_map:
            size = region.end - region.start + 1

            if region.type == "RAM":
                device = RAM(size)
            elif region.type == "ROM":
                device = ROM(size)
            else:
                logger.warning(
                    "Unknown device type '%s' for range %04X-%04X, defaulting to RAM",
                    region.type, region.start, region.end,
                )
                device = RAM(size)

            bus.register_device(region.start, region.end, device)
        return bus
