# retro6502/config/loader.py
"""
YAMLのシステム構成ファイルを読み込み、SystemConfig に変換します。
"""
import yaml
from typing import Dict, Any, List, Optional
from .models import SystemConfig, MemoryRegion, ProgramImage

VECTOR_NAMES = ("reset", "irq", "nmi")

class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self._parse_config(data or {})

    def _parse_config(self, data: Dict[str, Any]) -> SystemConfig:
        if not isinstance(data, dict):
            raise ValueError("Configuration root must be a mapping.")

        # Parse Memory Map
        memory_map = []
        for region_data in self._parse_list(data, "memory_map"):
            if not isinstance(region_data, dict):
                raise ValueError(f"memory_map entry must be a mapping: {region_data!r}")
            start = self._parse_int(region_data.get("start"))
            end = self._parse_int(region_data.get("end"))
            if not 0 <= start <= end <= 0xFFFF:
                raise ValueError(f"Invalid memory region {start:#x}-{end:#x}")

            memory_map.append(MemoryRegion(
                start=start,
                end=end,
                type=str(region_data.get("type", "RAM")).upper(),
                label=region_data.get("label", ""),
            ))

        # Parse Programs
        programs = []
        for program_data in self._parse_list(data, "programs"):
            if not isinstance(program_data, dict):
                raise ValueError(f"programs entry must be a mapping: {program_data!r}")
            path = program_data.get("path")
            if not path:
                raise ValueError("Program entry requires a 'path'.")
            programs.append(ProgramImage(
                path=path,
                format=str(program_data.get("format", "binary")).lower(),
                origin=self._parse_optional_int(program_data.get("origin")),
            ))

        # Parse Vectors
        vectors = {}
        vector_data = data.get("vectors") or {}
        if not isinstance(vector_data, dict):
            raise ValueError("vectors must be a mapping of name to address.")
        for name, value in vector_data.items():
            if name not in VECTOR_NAMES:
                raise ValueError(f"Unknown vector '{name}'. Expected one of {', '.join(VECTOR_NAMES)}.")
            vector = self._parse_int(value)
            if not 0 <= vector <= 0xFFFF:
                raise ValueError(f"Vector '{name}' out of range: {vector:#x}")
            vectors[name] = vector

        return SystemConfig(
            memory_map=memory_map,
            programs=programs,
            vectors=vectors,
        )

    def _parse_list(self, data: Dict[str, Any], key: str) -> List[Any]:
        value = data.get(key) or []
        if not isinstance(value, list):
            raise ValueError(f"{key} must be a list.")
        return value

    def _parse_optional_int(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        return self._parse_int(value)

    # @intent:responsibility YAMLの整数、"0x"/"$" 付き16進文字列、10進文字列を整数に変換します。
    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            text = value.strip()
            try:
                if text.lower().startswith("0x"):
                    return int(text, 16)
                if text.startswith("$"):
                    return int(text[1:], 16)
                return int(text)
            except ValueError:
                raise ValueError(f"Invalid integer format: {value}") from None
        raise ValueError(f"Invalid integer format: {value}")
