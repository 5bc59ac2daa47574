"""
optisubs – live exercise runner for the OptimisticSubs contract.
"""

__version__ = "0.1.0"
