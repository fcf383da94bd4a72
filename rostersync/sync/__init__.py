"""Reconciliation: observe, diff, execute and remember.

This package provides:
- Observation of current role holders, with a degraded per-ID mode
- The diff between roster state and guild state
- A change-detection memo that skips unchanged cycles
- A bounded, verifying executor for role grants, revocations and bans
"""
