"""Print a bearer token for local testing, shaped like the identity provider's.

Usage:
    python fastapi-backend/scripts/get_dev_token.py --user-id dev-citizen --email me@example.com

Signs with JWT_SECRET from the environment or fastapi-backend/.env. The token
only authenticates; call POST /api/v1/profile with it once to finish signup.
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(ROOT / "fastapi-backend"))

from warddost import auth


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--user-id", required=True)
    parser.add_argument("--email")
    parser.add_argument("--minutes", type=int, default=60)
    args = parser.parse_args()

    print(auth.create_access_token(args.user_id, email=args.email, expires_delta=timedelta(minutes=args.minutes)))


if __name__ == "__main__":
    main()
