"""
Parcel identifier (PNU) parsing

A PNU is 19 characters:
  [0:5]   sigungu code (region)
  [5:10]  beopjeongdong code (sub-region)
  [10]    land category flag, '2' = mountain lot (san)
  [11:15] main lot number (bun)
  [15:19] sub lot number (ji)
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidIdentifier


PNU_LENGTH = 19
MOUNTAIN_LOT_FLAG = "2"


@dataclass(frozen=True)
class ParcelIdentifier:
    pnu: str
    region_code: str
    subregion_code: str
    land_category_flag: str
    main_lot: str
    sub_lot: str

    @property
    def is_mountain_lot(self) -> bool:
        return self.land_category_flag == MOUNTAIN_LOT_FLAG

    @property
    def plat_gb_code(self) -> str:
        """Building ledger site code: '1' for mountain lots, '0' otherwise"""
        return "1" if self.is_mountain_lot else "0"

    @property
    def province_code(self) -> str:
        return self.region_code[:2]

    @property
    def district_code(self) -> str:
        return self.region_code[2:5]

    def __str__(self) -> str:
        return self.pnu


def parse_identifier(text: Optional[str]) -> ParcelIdentifier:
    """
    Decompose a PNU into its fields.

    Raises:
        InvalidIdentifier: if the value is missing or not 19 characters long
    """
    if text is None:
        raise InvalidIdentifier("PNU is required")

    pnu = text.strip()
    if len(pnu) != PNU_LENGTH:
        raise InvalidIdentifier(f"Invalid PNU code: expected {PNU_LENGTH} characters, got {len(pnu)}")

    return ParcelIdentifier(
        pnu=pnu,
        region_code=pnu[0:5],
        subregion_code=pnu[5:10],
        land_category_flag=pnu[10:11],
        main_lot=pnu[11:15],
        sub_lot=pnu[15:19],
    )
