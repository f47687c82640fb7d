from __future__ import annotations

import argparse
import asyncio
import json
from datetime import timedelta


async def _run(args: argparse.Namespace) -> int:
    # Import lazily so argparse --help stays fast.
    from easylist_backend.db import init_db, session_scope
    from easylist_backend.services.users_service import provision_user

    if args.init_db:
        await init_db()

    async with session_scope() as session:
        try:
            created = await provision_user(
                session,
                name=args.name,
                email=args.email,
                password=args.password,
                token_ttl=timedelta(days=args.token_days),
            )
        except ValueError as exc:
            print(json.dumps({"ok": False, "error": str(exc)}))
            return 1

    print(
        json.dumps(
            {
                "ok": True,
                "user_id": created.user.id,
                "default_folder_id": created.folder.id,
                "token": created.token,
            }
        )
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Create an active user, its default folder and an API token."
    )
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--token-days", type=int, default=30, help="Token lifetime in days")
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables first (local use; production runs Alembic).",
    )
    return asyncio.run(_run(parser.parse_args()))


if __name__ == "__main__":
    raise SystemExit(main())
