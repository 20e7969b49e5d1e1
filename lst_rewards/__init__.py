"""
Block-reward sharing tool for validators that back a liquid staking token.

Calculates the block rewards a validator identity earned in a past epoch and
distributes a share of them into the reserve of the associated stake pool.
"""

__version__ = "0.2.0"
