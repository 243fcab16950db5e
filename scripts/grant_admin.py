"""
Promote an account to admin (or demote it back to user).

Creates the account if the email has never registered, so an operator can
seed the first admin before anyone logs in. The new role takes effect on
the account's next login, since existing tokens carry the old role.

Usage:
    python -m scripts.grant_admin someone@uniport.edu.ng
    python -m scripts.grant_admin someone@uniport.edu.ng --revoke
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from auth.database import AccountDatabase
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.types import Account, Role
from clients.postgres_client import PostgresClient
from clients.vault_client import get_database_url

logger = logging.getLogger(__name__)


def grant_role(
    account_db: AccountDatabase,
    security_logger: SecurityLogger,
    email: str,
    role: Role,
) -> Account:
    """Set the role for email and record the change."""
    previous = account_db.get_account_by_email(email)
    account = account_db.upsert_account(email, role)

    security_logger.log(
        SecurityEvent.ROLE_CHANGED,
        email=account.email,
        account_id=account.id,
        details={
            "old": previous.role.value if previous else None,
            "new": account.role.value,
        },
    )
    logger.info(f"Role for {account.email} set to {account.role.value}")
    return account


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Grant or revoke the admin role")
    parser.add_argument("email", help="Account email")
    parser.add_argument("--revoke", action="store_true", help="Demote the account to a regular user")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    postgres = PostgresClient(get_database_url(), minconn=1, maxconn=2)
    try:
        account = grant_role(
            AccountDatabase(postgres),
            SecurityLogger(postgres),
            args.email,
            Role.USER if args.revoke else Role.ADMIN,
        )
    finally:
        postgres.close()

    print(f"{account.email} is now {account.role.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
