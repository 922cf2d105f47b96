"""
FinTrack - Source Package

A personal finance tracker that keeps a log of typed transactions and
derives balances, savings-goal progress and budget usage on demand.

DESIGN PRINCIPLES:
1. The transaction log is the only source of truth
2. Every view is recomputed from the log on read
3. Real and foreign (decoy) profiles never see each other's records
4. External services degrade to fallbacks, never crash a session
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinTrack Team"
