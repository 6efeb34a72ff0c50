#!/usr/bin/env python3
"""
KaraokeVerse — Main Entry Point

    ┌─────────────────────────────────────────────────────────────┐
    │                                                             │
    │   api       REST API for profiles + songs (FastAPI)         │
    │   migrate   Create the database tables                      │
    │   seed      Replace the song catalog with the seed songs    │
    │   client    Flow controller + bridge for the headset page   │
    │                                                             │
    └─────────────────────────────────────────────────────────────┘

Usage:
    python3 -m karaoke.main migrate
    python3 -m karaoke.main seed
    python3 -m karaoke.main api --port 3001
    python3 -m karaoke.main client --api-url http://localhost:3001/api
"""

import argparse
import asyncio
import sys

from .config import API_BASE_URL, BRIDGE_HOST, BRIDGE_PORT, TARGET_FPS
from .log import setup_logging


def banner(title: str) -> None:
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print()


# ═══════════════════════════════════════════════════════════════════════
#  COMMANDS
# ═══════════════════════════════════════════════════════════════════════

def cmd_api(args: argparse.Namespace) -> None:
    import uvicorn

    from karaoke_api.api import create_app
    from karaoke_api.db import get_engine

    banner("KaraokeVerse API Server")
    engine = get_engine(args.database_url)
    print(f"  Database: {engine.url.render_as_string(hide_password=True)}")
    print(f"  Listening: http://{args.host}:{args.port}/api")
    print()
    uvicorn.run(create_app(engine), host=args.host, port=args.port, log_level="info")


def cmd_migrate(args: argparse.Namespace) -> None:
    from karaoke_api.db import get_engine, init_db

    banner("KaraokeVerse — Migrate")
    init_db(get_engine(args.database_url))
    print("  ✓ Created players table")
    print("  ✓ Created songs table")
    print("  ✓ Created indexes")


def cmd_seed(args: argparse.Namespace) -> None:
    from karaoke_api.db import get_engine
    from karaoke_api.seed import seed

    banner("KaraokeVerse — Seed")
    count = seed(get_engine(args.database_url))
    print(f"  ✓ Inserted {count} songs")


def cmd_client(args: argparse.Namespace) -> None:
    from .app import KaraokeApp, build_context
    from .bridge import BrowserBridge

    banner("KaraokeVerse — Client")
    print(f"  API:     {args.api_url}")
    print(f"  Bridge:  ws://{args.host}:{args.port}")
    print()

    context = build_context(bridge=BrowserBridge(), base_url=args.api_url)
    app = KaraokeApp(context, host=args.host, port=args.port, fps=args.fps)
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        print("\nShutting down...")


# ═══════════════════════════════════════════════════════════════════════
#  CLI
# ═══════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="karaoke",
        description="KaraokeVerse — VR karaoke client and API",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    sub = parser.add_subparsers(dest="command", required=True)

    from karaoke_api.config import API_HOST, API_PORT

    api = sub.add_parser("api", help="Run the REST API")
    api.add_argument("--host", default=API_HOST)
    api.add_argument("--port", type=int, default=API_PORT)
    api.add_argument("--database-url", default=None)
    api.set_defaults(func=cmd_api)

    migrate = sub.add_parser("migrate", help="Create database tables")
    migrate.add_argument("--database-url", default=None)
    migrate.set_defaults(func=cmd_migrate)

    seed = sub.add_parser("seed", help="Load the seed song catalog")
    seed.add_argument("--database-url", default=None)
    seed.set_defaults(func=cmd_seed)

    client = sub.add_parser("client", help="Run the flow controller and browser bridge")
    client.add_argument("--api-url", default=API_BASE_URL)
    client.add_argument("--host", default=BRIDGE_HOST)
    client.add_argument("--port", type=int, default=BRIDGE_PORT)
    client.add_argument("--fps", type=int, default=TARGET_FPS)
    client.set_defaults(func=cmd_client)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        setup_logging(args.log_level.upper(), force=True)
    args.func(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
