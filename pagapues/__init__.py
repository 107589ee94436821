"""
PagaPues - Source Package

Splits shared group expenses among participants and proposes the
peer-to-peer payments that settle every debt.

DESIGN PRINCIPLES:
1. The settlement engine is pure: same inputs, same outputs, no I/O
2. Validation happens at the boundary, never inside the engine
3. Storage layer is swappable
4. Every ledger change is auditable
5. Output is advice only - nothing moves real money
"""

__version__ = "1.0.0"
__author__ = "PagaPues Team"
