#!/usr/bin/env python3
"""
Print a signed bearer token for local development.

Tokens are normally minted by the login service. This script signs one
with the same JWT_SECRET the API validates against, so you can call the
upload endpoints with curl.

Usage:
    python scripts/issue_token.py                  # new random user id
    python scripts/issue_token.py --user-id <uuid> --hours 8

Requires:
    - JWT_SECRET in the environment or a .env file
"""

import os
import sys
import uuid
from datetime import timedelta
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from tubely.infrastructure.auth.jwt import issue_access_token


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Issue a Tubely bearer token')
    parser.add_argument('--user-id', default=None, help='User UUID (default: random)')
    parser.add_argument('--hours', type=float, default=1.0, help='Token lifetime in hours')
    parser.add_argument('--issuer', default=os.environ.get('JWT_ISSUER', 'tubely'), help='Token issuer')
    args = parser.parse_args()

    secret = os.environ.get('JWT_SECRET')
    if not secret:
        print("ERROR: JWT_SECRET is not set")
        sys.exit(1)

    try:
        user_id = uuid.UUID(args.user_id) if args.user_id else uuid.uuid4()
    except ValueError:
        print(f"ERROR: Not a UUID: {args.user_id}")
        sys.exit(1)

    token = issue_access_token(
        user_id,
        secret,
        issuer=args.issuer,
        expires_in=timedelta(hours=args.hours),
    )

    print(f"User ID: {user_id}", file=sys.stderr)
    print(token)


if __name__ == '__main__':
    main()
