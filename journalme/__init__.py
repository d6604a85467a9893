"""
JournalMe - Source Package

A local-first personal productivity assistant: a free-text journal,
a daily discipline tracker, simple goals, and a "survival budget"
calculator for personal cash flow.

DESIGN PRINCIPLES:
1. Everything lives on the user's machine
2. The liquidity engine is pure: snapshot in, report out
3. Validate at the point of entry, never coerce later
4. Every money-moving action is logged
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "JournalMe Team"
