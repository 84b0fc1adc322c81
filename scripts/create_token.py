"""Mint a bearer token for local development."""

import sys
from datetime import timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.security import create_access_token


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create a development access token")
    parser.add_argument("user_id", help="Principal id to put in the token subject")
    parser.add_argument("--username", default=None)
    parser.add_argument("--minutes", type=int, default=60)
    args = parser.parse_args()

    token = create_access_token(
        {"sub": args.user_id, "username": args.username},
        expires_delta=timedelta(minutes=args.minutes),
    )
    print(token)
