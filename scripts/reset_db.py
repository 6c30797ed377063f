#!/usr/bin/env python3
"""
Reset the stock ledger database: drop all tables and recreate the schema
from the active configuration set.  With ``--seed-demo`` also creates two
warehouses, three products and a supplier and restocks the first warehouse, so the
lifecycles can be exercised by hand.

Usage:
  python3 scripts/reset_db.py [--config PATH] [--db-url URL] [--seed-demo]

The database URL comes from --db-url, else STOCK_DATABASE_URL, else the
configuration set.
"""

import argparse
import sys
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Drop and recreate the stock ledger schema")
    p.add_argument("--config", default=None, help="Configuration YAML (default: stock_config/sets/default.yaml)")
    p.add_argument("--db-url", default=None, help="Database URL (overrides the configuration)")
    p.add_argument("--seed-demo", action="store_true", help="Create demo warehouses, products, a supplier and stock")
    return p.parse_args()


def _seed_demo(session, config) -> None:
    from stock_config.bridges import build_stock_adjustment_service
    from stock_kernel.services.catalog_service import CatalogService

    actor = uuid4()
    catalog = CatalogService(session)
    main = catalog.create_warehouse("Main Warehouse", "Springfield", actor_id=actor, capacity=10000)
    catalog.create_warehouse("Overflow Depot", "Shelbyville", actor_id=actor)
    products = [
        catalog.create_product("WID-001", "Widget", Decimal("9.99"), Decimal("4.00"), actor_id=actor),
        catalog.create_product("GAD-001", "Gadget", Decimal("24.50"), Decimal("11.25"), actor_id=actor),
        catalog.create_product(
            "GIZ-001", "Gizmo", Decimal("3.75"), Decimal("1.10"), actor_id=actor, reorder_level=None
        ),
    ]
    catalog.create_supplier(
        "Acme Supply", actor_id=actor, contact_person="Ada Lovelace", payment_terms="Net 30"
    )
    session.commit()

    adjustments = build_stock_adjustment_service(session, config)
    for product in products:
        adjustments.adjust_stock(product.id, main.id, 100, "Opening balance", actor_id=actor)

    print(f"  Seeded 2 warehouses, {len(products)} products and 1 supplier (actor {actor}).")


def main() -> int:
    args = _parse_args()

    import dataclasses

    from stock_config import get_active_config
    from stock_config.bridges import init_engine_from_config
    from stock_kernel.db.engine import create_tables, drop_tables, get_session

    config = get_active_config(args.config)
    if args.db_url:
        config = dataclasses.replace(
            config, database=dataclasses.replace(config.database, url=args.db_url)
        )

    print()
    print(f"  [1/3] Connecting to {config.database.url.split('@')[-1]}...")
    try:
        init_engine_from_config(config)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    print("  [2/3] Dropping tables and recreating schema...")
    drop_tables()
    create_tables()

    if args.seed_demo:
        print("  [3/3] Seeding demo catalog...")
        session = get_session()
        try:
            _seed_demo(session, config)
        finally:
            session.close()
    else:
        print("  [3/3] Skipping demo data (pass --seed-demo to create it).")

    print()
    print("  Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
