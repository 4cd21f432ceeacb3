from __future__ import annotations

from .registrar import MemoRegistrar, build_registration_memo, parse_registration

__all__ = ["MemoRegistrar", "build_registration_memo", "parse_registration"]
