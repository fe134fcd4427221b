"""
timelock_kernel -- period locks and manager-edit reconciliation for timesheets.

Layers, innermost first:

    domain/     pure decision logic and DTOs (no I/O)
    db/         declarative base, engine, append-only guards
    models/     ORM tables
    selectors/  read-only queries returning DTOs
    services/   imperative shell, owns transactions and side effects
"""

__version__ = "0.1.0"
