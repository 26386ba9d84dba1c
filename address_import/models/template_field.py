from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Address type enum and TemplateField model.

TemplateField describes one semantic column of an address upload. The ordered
tuple of fields for an address type drives header mapping, the downloadable
template column order and the labels used in error reports.
"""

__all__ = [
    "AddressType",
    "TemplateField",
]


class AddressType(str, Enum):
    """Role of an address within a project.

    Only INSTALL_AT carries a reference (ship_to_parent) to another address,
    which must be a SHIP_TO address of the same project.
    """
    BILL_FROM = "bill_from"
    SHIP_FROM = "ship_from"
    BILL_TO = "bill_to"
    SHIP_TO = "ship_to"
    INSTALL_AT = "install_at"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


@dataclass(frozen=True)
class TemplateField:
    """One column of an address import template."""
    key: str  # 永続化カラム名 (ship_to_reference のみ仮想列)
    label: str  # ヘッダ表示名
    description: str = ""
    format_rule: str = ""  # e.g. "Exactly 6 digits"
    example_value: str = ""
    always_required: bool = False  # プロジェクト設定に関係なく必須
