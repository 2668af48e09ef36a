"""Study room membership ledger.

This package is organized by feature modules (members, payments, attendance,
scheduler, bridge, ...) with a thin Flask controller layer over service and
repository layers that share one SQLite ledger store.
"""
