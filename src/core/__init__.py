"""
Core domain models, mathematical primitives, and invariants.

This module contains the foundational building blocks of the AMM engine that
are independent of the application controller (registry, ledger, metrics).
"""
