"""
Lifecycle modules (``stock_modules``).

Responsibility
--------------
Purchasing, sales, transfers and adjustments.  Each subpackage declares its
workflow and a thin service that composes the kernel's status guard,
inventory ledger and transaction log.

Architecture
------------
Layer: **Modules**.  Imports from ``stock_kernel`` and ``stock_config``;
the kernel never imports from here.  Every public service method owns its
transaction boundary.
"""
