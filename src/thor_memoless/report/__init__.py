from __future__ import annotations

from .formatter import (
    format_assets_table,
    format_deposit_instruction,
    instruction_to_dict,
)

__all__ = [
    "format_assets_table",
    "format_deposit_instruction",
    "instruction_to_dict",
]
