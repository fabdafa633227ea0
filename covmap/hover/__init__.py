"""Hover debouncing and tooltip content."""
from __future__ import annotations

from .tooltip import TooltipContent, build_tooltip, format_mortality, mortality_rate
from .tracker import Hide, HoverState, HoverTracker, Show

__all__ = [
    "Hide",
    "HoverState",
    "HoverTracker",
    "Show",
    "TooltipContent",
    "build_tooltip",
    "format_mortality",
    "mortality_rate",
]
