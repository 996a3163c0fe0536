"""
Test suite for cpamm-engine

Contains:
- tests/unit/          : Unit tests for individual modules (pricing, pool state,
                         candles, ledger, metrics, engine, contracts)
"""
