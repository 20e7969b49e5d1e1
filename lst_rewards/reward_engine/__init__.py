"""Reward computation: sources, the split policy and transfer planning."""
