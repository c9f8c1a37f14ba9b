"""OHADA ledger kernel: entries, chart of accounts, fiscal years and their invariants."""
