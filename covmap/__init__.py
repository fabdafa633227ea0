"""
covmap — live epidemiological point map.

Entry point: python -m covmap.app

Provides:
- Feed ingestion with retry (ingest/)
- Feed record → point feature transformation (geo.features)
- Data-driven radius / colour / stroke scales (geo.scales)
- Antimeridian-aware tooltip anchoring (geo.wrap)
- Country flag lookup (geo.country)
- Hover debouncing and tooltip content (hover/)
- Dataset lifecycle + renderer command boundary (session)
- PyQt5 point-layer map widget (gui/)
"""

__version__ = "0.3.0"
