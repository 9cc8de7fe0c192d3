"""Splitify: shared credit-card expense ledger."""
