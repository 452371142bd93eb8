from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from pydantic import ValidationError

from oms.core.logging import configure_logging
from oms.core.security import Identity
from oms.demo import seed_demo_shop
from oms.domain.errors import OrderError
from oms.domain.orders.commands import place_order
from oms.domain.orders.service import OrderLifecycleService
from oms.persistence import pg


def _print(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _parse_item(raw: str) -> dict:
    product_id, sep, quantity = raw.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"item must be PRODUCT_ID:QUANTITY, got {raw!r}")
    try:
        return {"product_id": int(product_id), "quantity": int(quantity)}
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"item must be PRODUCT_ID:QUANTITY, got {raw!r}") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oms", description="Order lifecycle CLI")
    parser.add_argument("--log-level", default=None)
    top = parser.add_subparsers(dest="command", required=True)

    top.add_parser("init-db", help="Create database tables")
    top.add_parser("seed-demo", help="Create a demo buyer, seller and catalogue")

    orders = top.add_parser("orders", help="Order operations")
    orders_sub = orders.add_subparsers(dest="orders_command", required=True)

    create = orders_sub.add_parser("create", help="Place an order")
    create.add_argument("--as", dest="identity", required=True, help="Authenticated caller (email)")
    create.add_argument("--user-id", type=int, required=True)
    create.add_argument("--shipping-address-id", type=int, default=None)
    create.add_argument("--item", dest="items", type=_parse_item, action="append", required=True)

    get = orders_sub.add_parser("get", help="Show one order")
    get.add_argument("order_id", type=int)

    list_cmd = orders_sub.add_parser("list", help="List a user's orders")
    list_cmd.add_argument("--user-id", type=int, required=True)

    set_status = orders_sub.add_parser("set-status", help="Move an order to another status")
    set_status.add_argument("--as", dest="identity", required=True, help="Authenticated seller (email)")
    set_status.add_argument("order_id", type=int)
    set_status.add_argument("status")

    delete = orders_sub.add_parser("delete", help="Hard-delete an order")
    delete.add_argument("order_id", type=int)

    return parser


def _run_orders(args: argparse.Namespace, service: OrderLifecycleService) -> int:
    if args.orders_command == "create":
        request = place_order(
            user_id=args.user_id,
            items=args.items,
            shipping_address_id=args.shipping_address_id,
        )
        order = service.create_order(Identity(subject=args.identity), request)
        _print(order.to_dict())
        return 0

    if args.orders_command == "get":
        _print(service.get_order(args.order_id).to_dict())
        return 0

    if args.orders_command == "list":
        orders = service.list_orders_for_user(args.user_id)
        _print({"user_id": args.user_id, "count": len(orders), "orders": [o.to_dict() for o in orders]})
        return 0

    if args.orders_command == "set-status":
        order = service.update_order_status(Identity(subject=args.identity), args.order_id, args.status)
        _print(order.to_dict())
        return 0

    if args.orders_command == "delete":
        service.cancel_order(args.order_id)
        _print({"order_id": args.order_id, "deleted": True})
        return 0

    return 2


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "init-db":
        pg.init_db()
        _print({"initialized": True})
        return 0

    if args.command == "seed-demo":
        pg.init_db()
        with pg.session_scope() as session:
            _print(seed_demo_shop(session))
        return 0

    if args.command == "orders":
        try:
            return _run_orders(args, OrderLifecycleService())
        except OrderError as exc:
            print(json.dumps(exc.to_dict(), ensure_ascii=False, default=str), file=sys.stderr)
            return 1
        except ValidationError as exc:
            payload = {"error": "invalid_request", "detail": exc.errors(include_url=False)}
            print(json.dumps(payload, ensure_ascii=False, default=str), file=sys.stderr)
            return 1

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
