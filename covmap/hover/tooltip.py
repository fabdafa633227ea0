"""
Tooltip content for a hovered point.

The payload is structured (``TooltipContent``) so renderers can lay it out
however they like; ``to_html()`` gives the stock popup markup.
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..errors import DivisionUndefined
from ..geo.country import CountryLookup
from ..geo.features import PointFeature

log = logging.getLogger(__name__)

MORTALITY_PLACEHOLDER = "N/A"


def mortality_rate(cases: int, deaths: int) -> float:
    """Deaths per hundred cases.  Raises DivisionUndefined when cases == 0."""
    if cases == 0:
        raise DivisionUndefined("mortality rate undefined for zero cases")
    return deaths / cases * 100.0


def format_mortality(cases: int, deaths: int) -> str:
    try:
        return f"{mortality_rate(cases, deaths):.2f}%"
    except DivisionUndefined:
        return MORTALITY_PLACEHOLDER


@dataclass(frozen=True)
class TooltipContent:
    country: str
    province: Optional[str]
    cases: int
    deaths: int
    mortality: str
    flag_url: Optional[str] = None

    def lines(self) -> List[str]:
        out = [f"Country: {self.country}"]
        if self.province is not None:
            out.append(f"Province: {self.province}")
        out.extend([
            f"Cases: {self.cases}",
            f"Deaths: {self.deaths}",
            f"Mortality Rate: {self.mortality}",
        ])
        return out

    def to_html(self, include_flag: bool = True) -> str:
        esc = html.escape
        parts = [f"<p>Country: <b>{esc(self.country)}</b></p>"]
        if self.province is not None:
            parts.append(f"<p>Province: <b>{esc(self.province)}</b></p>")
        parts.extend([
            f"<p>Cases: <b>{self.cases}</b></p>",
            f"<p>Deaths: <b>{self.deaths}</b></p>",
            f"<p>Mortality Rate: <b>{esc(self.mortality)}</b></p>",
        ])
        if include_flag and self.flag_url:
            parts.append(f'<img src="{esc(self.flag_url)}"/>')
        return "\n".join(parts)


def build_tooltip(
    feature: PointFeature,
    lookup: Optional[CountryLookup] = None,
) -> TooltipContent:
    """Format *feature* for display.

    A failed flag lookup only drops the flag; the rest of the tooltip is
    always produced.
    """
    flag = None
    if lookup is not None:
        try:
            flag = lookup.flag_url(feature.country)
        except Exception as exc:
            log.warning("Flag lookup for %r failed: %s", feature.country, exc)
            flag = None

    return TooltipContent(
        country=feature.country,
        province=feature.province,
        cases=feature.cases,
        deaths=feature.deaths,
        mortality=format_mortality(feature.cases, feature.deaths),
        flag_url=flag,
    )
