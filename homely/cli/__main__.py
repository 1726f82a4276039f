# homely/cli/__main__.py
from __future__ import annotations

import argparse

from homely.cli.seed_demo import DEMO_DOMAIN, seed_demo
from homely.db import init_db


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(prog="python -m homely.cli")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create all tables")

    seed = sub.add_parser("seed-demo", help="create demo users, a property and units")
    seed.add_argument("--domain", default=DEMO_DOMAIN, help="email domain for demo users")

    args = p.parse_args(argv)

    if args.command == "init-db":
        init_db()
        print({"ok": True, "command": "init-db"})
        return

    out = seed_demo(domain=args.domain)
    print(
        {
            "ok": True,
            "users": out.users,
            "property_id": out.property_id,
            "unit_ids": list(out.unit_ids),
        }
    )


if __name__ == "__main__":
    main()
