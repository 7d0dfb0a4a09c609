from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional, Protocol

from core.config.config_service import CompositorConfig, config_service


@dataclass(frozen=True)
class NamingContext:
    source_name: Optional[str]      # filename of the edited PDF, if any
    user_name: Optional[str] = None  # name typed by the user (image composition)


class NamingStrategy(Protocol):
    def strategy_id(self) -> str: ...
    def export_filename(self, ctx: NamingContext) -> str: ...
    def composition_filename(self, ctx: NamingContext) -> str: ...


class DefaultPrefixStrategy:
    """Default: file.pdf -> edited-file.pdf; images -> <name or document>.pdf"""
    def __init__(self, config: Optional[CompositorConfig] = None) -> None:
        self._cfg = config or config_service.compositor

    def strategy_id(self) -> str:
        return "default_prefix"

    def export_filename(self, ctx: NamingContext) -> str:
        base = os.path.basename(ctx.source_name or "") or f"{self._cfg.default_document_name}.pdf"
        return f"{self._cfg.export_prefix}{base}"

    def composition_filename(self, ctx: NamingContext) -> str:
        name = (ctx.user_name or "").strip() or self._cfg.default_document_name
        if name.lower().endswith(".pdf"):
            return name
        return f"{name}.pdf"
