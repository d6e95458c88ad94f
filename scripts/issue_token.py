#!/usr/bin/env python3
"""
Mint a development access token.

Tokens are normally issued by the identity service; this script produces one
with the same claims (sub, org, role) signed with the local JWT settings.

Usage:
  python scripts/issue_token.py --organization-id UUID [--user-id UUID] [--role ADMIN]
"""

import argparse
import sys
from pathlib import Path
from uuid import UUID, uuid4

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config.settings import get_settings
from src.domain.value_objects.role import Role
from src.infrastructure.auth.jwt_service import JWTService


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue a development access token")
    parser.add_argument("--organization-id", type=UUID, required=True)
    parser.add_argument("--user-id", type=UUID, default=None)
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.ADMIN.value)
    args = parser.parse_args()

    settings = get_settings()
    service = JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
        access_token_expires_minutes=settings.jwt_access_token_expires_minutes,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )
    user_id = args.user_id or uuid4()
    token = service.create_access_token(
        subject=user_id, organization_id=args.organization_id, role=Role(args.role)
    )
    print(f"user_id={user_id}")
    print(token)


if __name__ == "__main__":
    main()
