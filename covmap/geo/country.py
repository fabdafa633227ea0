"""
Country name → ISO 3166 alpha-2 lookup for tooltip flags.

Feed country names mostly match ISO names, but the JHU feed has its own
spellings for some places ("US", "Korea, South", "Taiwan*").  Those go
through an alias table first, then ``pycountry``'s lookup (alpha-2/3,
name, official and common names).  A miss is never an error for callers:
``iso2()`` and ``flag_url()`` return None.

Usage
-----
    lookup = CountryLookup()
    lookup.iso2("Italy")        # "IT"
    lookup.flag_url("Italy")    # "https://flagcdn.com/64x48/it.png"
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

import pycountry

from ..errors import LookupMiss

log = logging.getLogger(__name__)

# JHU spelling → alpha-2
_ALIASES: Dict[str, str] = {
    "US": "US",
    "Korea, South": "KR",
    "Korea, North": "KP",
    "Taiwan*": "TW",
    "Taiwan": "TW",
    "Burma": "MM",
    "Congo (Kinshasa)": "CD",
    "Congo (Brazzaville)": "CG",
    "Cote d'Ivoire": "CI",
    "Holy See": "VA",
    "West Bank and Gaza": "PS",
    "Kosovo": "XK",
    "Laos": "LA",
    "Russia": "RU",
    "Iran": "IR",
    "Syria": "SY",
    "Vietnam": "VN",
    "Bolivia": "BO",
    "Venezuela": "VE",
    "Tanzania": "TZ",
    "Moldova": "MD",
    "Brunei": "BN",
    "Micronesia": "FM",
    "Turkey": "TR",
}

# Feed entries that are not countries (cruise ships, programmes)
_NOT_COUNTRIES = frozenset({
    "Diamond Princess",
    "MS Zaandam",
    "Summer Olympics 2020",
    "Winter Olympics 2022",
    "Antarctica",
})


class CountryLookup:
    """Resolves feed country names to ISO alpha-2 codes, with caching.

    Parameters
    ----------
    flag_url_template : str
        Format string with an ``{iso2}`` field (lower-cased code).
    """

    def __init__(self, flag_url_template: str = "https://flagcdn.com/64x48/{iso2}.png"):
        self._template = flag_url_template
        self._cache: Dict[str, Optional[str]] = {}

    def resolve(self, name: str) -> str:
        """Return the alpha-2 code for *name*; raise LookupMiss if unknown."""
        key = (name or "").strip()
        if not key or key in _NOT_COUNTRIES:
            raise LookupMiss(f"not a country: {name!r}")
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return pycountry.countries.lookup(key).alpha_2
        except LookupError:
            raise LookupMiss(f"unknown country: {name!r}") from None

    def iso2(self, name: str) -> Optional[str]:
        if name in self._cache:
            return self._cache[name]
        try:
            code: Optional[str] = self.resolve(name)
        except LookupMiss as exc:
            log.debug("Flag lookup miss: %s", exc)
            code = None
        self._cache[name] = code
        return code

    def flag_url(self, name: str) -> Optional[str]:
        code = self.iso2(name)
        if code is None:
            return None
        return self._template.format(iso2=code.lower())
