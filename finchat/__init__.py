"""
finchat - Source Package

A rule-based financial assistant that answers free-text money questions
for a household: what was spent, how loans will pay down, how savings
will grow.

DESIGN PRINCIPLES:
1. Classification is deterministic (patterns, not models)
2. Every number comes from real records or a bounded simulation
3. Simulations always terminate
4. Every step is logged
5. The data source is swappable
"""

__version__ = "1.0.0"
__author__ = "finchat Team"
