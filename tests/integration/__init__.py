"""
Integration tests for the governance dashboard.

These drive the dashboard end to end, from wallet connection through proposal
loading and transaction confirmation, against an in-memory governance chain.
"""
