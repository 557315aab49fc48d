# retro6502/loader/loader.py
"""
コードローダーモジュール。
生バイナリ、Intel HEX および Motorola S-Record 形式のロードをサポートします。

イメージの配置は Bus.load を使うため、ROM領域にも書き込めます。
"""
import logging
from typing import Optional

from retro6502.transport.bus import Bus, ADDRESS_SPACE_SIZE

logger = logging.getLogger(__name__)

# @intent:responsibility 1バイトを配置する。64KiBを超えるアドレスは行番号付きで拒否する。
def _store(bus: Bus, address: int, data: int, line_num: int) -> None:
    if not 0 <= address < ADDRESS_SPACE_SIZE:
        raise ValueError(f"Address {address:#x} on line {line_num} is outside the 64KiB address space.")
    bus.load(address, data)

class BinaryLoader:
    """
    生のバイト列をそのまま指定アドレスから配置するローダー。
    """
    def load_binary(self, file_path: str, bus: Bus, origin: int) -> int:
        with open(file_path, 'rb') as f:
            data = f.read()
        bus.load_bytes(origin, data)
        logger.debug("loaded %d bytes from %s at $%04X", len(data), file_path, origin)
        return len(data)

class IntelHexLoader:
    """
    Intel HEX形式のファイルを解析し、データをバスにロードするローダー。
    """
    def load_intel_hex(self, file_path: str, bus: Bus) -> None:
        current_extended_address = 0x0000
        loaded = 0

        with open(file_path, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or not line.startswith(':'):
                    continue

                comment_start = line.find(';')
                if comment_start != -1:
                    line = line[:comment_start].strip()

                if len(line) < 11:
                    raise ValueError(f"Invalid Intel HEX record format on line {line_num}: Too short - {line}")

                try:
                    data_length = int(line[1:3], 16)
                    address_field = int(line[3:7], 16)
                    record_type = int(line[7:9], 16)
                    data_part_str = line[9:-2]
                    checksum_field = int(line[-2:], 16)
                    data = bytes.fromhex(data_part_str)
                except ValueError as e:
                    raise ValueError(f"Error parsing Intel HEX line {line_num}: {line} - {e}") from e

                if len(data) != data_length:
                    raise ValueError(f"Data length mismatch on line {line_num}")

                checksum_sum = data_length + (address_field >> 8) + (address_field & 0xFF) + record_type + sum(data)
                calculated_checksum = (~checksum_sum + 1) & 0xFF
                if calculated_checksum != checksum_field:
                    raise ValueError(
                        f"Checksum mismatch on line {line_num}: "
                        f"Calculated {calculated_checksum:02X}, Expected {checksum_field:02X}"
                    )

                if record_type == 0x00:
                    load_address = current_extended_address + address_field
                    for i, byte_data in enumerate(data):
                        _store(bus, load_address + i, byte_data, line_num)
                    loaded += data_length
                elif record_type == 0x01:
                    break
                elif record_type == 0x04:
                    current_extended_address = int.from_bytes(data, 'big') << 16
                elif record_type == 0x02:
                    current_extended_address = int.from_bytes(data, 'big') << 4
                elif record_type in (0x03, 0x05):
                    pass
                else:
                    raise ValueError(f"Unknown Intel HEX record type {record_type:02X} on line {line_num}")

        logger.debug("loaded %d bytes from Intel HEX %s", loaded, file_path)

class SRecordLoader:
    """
    Motorola S-Record (S19, S28, S37) 形式のファイルを解析し、データをバスにロードするローダー。
    """
    # S1/S2/S3 のアドレスフィールド長 (16進文字数)
    _ADDRESS_LENGTH = {'1': 4, '2': 6, '3': 8}

    def load_srecord(self, file_path: str, bus: Bus) -> None:
        loaded = 0

        with open(file_path, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or not line.startswith('S'):
                    continue

                try:
                    record_type = line[1]
                    count = int(line[2:4], 16)
                    payload = bytes.fromhex(line[4:4 + count * 2])
                except (ValueError, IndexError) as e:
                    raise ValueError(f"Error parsing S-Record line {line_num}: {e}") from e

                if len(payload) != count or count < 1:
                    raise ValueError(f"S-Record byte count mismatch on line {line_num}")

                calculated_checksum = (~(count + sum(payload[:-1]))) & 0xFF
                if calculated_checksum != payload[-1]:
                    raise ValueError(f"S-Record checksum mismatch on line {line_num}")

                addr_len = self._ADDRESS_LENGTH.get(record_type)
                if addr_len is None:
                    # S0 (header), S5/S6 (count), S7-S9 (start address)
                    continue

                address_bytes = addr_len // 2
                address = int.from_bytes(payload[:address_bytes], 'big')
                for i, byte_data in enumerate(payload[address_bytes:-1]):
                    _store(bus, address + i, byte_data, line_num)
                loaded += len(payload) - address_bytes - 1

        logger.debug("loaded %d bytes from S-Record %s", loaded, file_path)

# @intent:responsibility 形式名 (binary / ihex / srec) に応じて適切なローダーを呼び出します。
def load_program(bus: Bus, file_path: str, fmt: str = "binary", origin: Optional[int] = None) -> None:
    fmt = fmt.lower()
    if fmt in ("binary", "bin"):
        if origin is None:
            raise ValueError(f"Binary image {file_path} requires an origin address.")
        BinaryLoader().load_binary(file_path, bus, origin)
    elif fmt in ("ihex", "hex"):
        IntelHexLoader().load_intel_hex(file_path, bus)
    elif fmt in ("srec", "s19", "s28", "s37"):
        SRecordLoader().load_srecord(file_path, bus)
    else:
        raise ValueError(f"Unsupported program format: {fmt}")
