"""Apply or roll back the files / file_chunks schema with Alembic."""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from alembic import command
from alembic.config import Config

from src.config import settings


def alembic_config() -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    return cfg


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage the upload metadata schema")
    sub = parser.add_subparsers(dest="action", required=True)
    up = sub.add_parser("upgrade", help="Upgrade to a revision (default: head)")
    up.add_argument("revision", nargs="?", default="head")
    down = sub.add_parser("downgrade", help="Downgrade to a revision (e.g. -1 or base)")
    down.add_argument("revision")
    sub.add_parser("current", help="Show the applied revision")
    args = parser.parse_args()

    cfg = alembic_config()
    print(f"Database: {settings.database_url.split('@')[-1]}")

    if args.action == "upgrade":
        command.upgrade(cfg, args.revision)
    elif args.action == "downgrade":
        command.downgrade(cfg, args.revision)
    else:
        command.current(cfg, verbose=True)
