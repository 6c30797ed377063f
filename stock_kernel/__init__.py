"""
Stock Kernel

A transactional inventory ledger with:
- Per (product, warehouse) available/reserved balances
- Append-only transaction log
- Guarded status lifecycles for purchase orders, sales orders and transfers
- All-or-nothing multi-item transitions
"""

__version__ = "0.1.0"
