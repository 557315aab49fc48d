# src/retro6502/arch/mos6502/state.py
"""
MOS 6502 CPUの状態定義。
"""
from dataclasses import dataclass
from retro6502.core.state import CpuState

# @intent:responsibility MOS 6502 CPUの状態（レジスタ、フラグ）を保持する。
@dataclass
class Mos6502CpuState(CpuState):
    """
    MOS 6502 CPUのレジスタ状態。
    SPはスタックページ($0100-$01FF)内の8bitオフセットとして保持する。
    """
    a: int = 0
    x: int = 0
    y: int = 0
    p: int = 0

    # Flag bit masks
    C_FLAG = 0x01  # Carry
    Z_FLAG = 0x02  # Zero
    I_FLAG = 0x04  # Interrupt Disable
    D_FLAG = 0x08  # Decimal Mode
    B_FLAG = 0x10  # Break Command
    U_FLAG = 0x20  # Unused (Always 1)
    V_FLAG = 0x40  # Overflow
    N_FLAG = 0x80  # Negative

    @property
    def flag_c(self) -> bool: return bool(self.p & self.C_FLAG)
    @property
    def flag_z(self) -> bool: return bool(self.p & self.Z_FLAG)
    @property
    def flag_i(self) -> bool: return bool(self.p & self.I_FLAG)
    @property
    def flag_d(self) -> bool: return bool(self.p & self.D_FLAG)
    @property
    def flag_b(self) -> bool: return bool(self.p & self.B_FLAG)
    @property
    def flag_u(self) -> bool: return bool(self.p & self.U_FLAG)
    @property
    def flag_v(self) -> bool: return bool(self.p & self.V_FLAG)
    @property
    def flag_n(self) -> bool: return bool(self.p & self.N_FLAG)

    def get_flag(self, mask: int) -> bool:
        return bool(self.p & mask)

    # @intent:responsibility 1つのフラグをセットまたはクリアする。
    # @intent:invariant クリアは反転マスクとのANDで行い、他のビットには触れない。
    def set_flag(self, mask: int, value: bool) -> None:
        if value:
            self.p |= mask
        else:
            self.p &= ~mask & 0xFF

    # @intent:responsibility 複数フラグをキーワードでまとめて更新する (例: update_flags(n=True, z=False))。
    def update_flags(self, **kwargs: bool) -> None:
        for flag_name, value in kwargs.items():
            mask = getattr(self, f"{flag_name.upper()}_FLAG")
            self.set_flag(mask, value)

    # @intent:responsibility 結果値からN, Zフラグを更新する。
    def update_nz(self, value: int) -> None:
        self.update_flags(n=(value & 0x80) != 0, z=(value & 0xFF) == 0)
