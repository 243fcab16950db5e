"""Database operations for accounts (the credential store).

Table: accounts. Emails are stored lowercased and are unique.
"""

from uuid import UUID

from clients.postgres_client import PostgresClient
from auth.types import Account, Role
from utils.timezone import now_utc

_ACCOUNT_COLUMNS = "id, email, role, created_at, last_login_at"


def _row_to_account(row: dict) -> Account:
    return Account(
        id=UUID(row["id"]) if isinstance(row["id"], str) else row["id"],
        email=row["email"],
        role=Role(row["role"]),
        created_at=row["created_at"],
        last_login_at=row["last_login_at"],
    )


class AccountDatabase:
    """Database operations for accounts."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def get_account_by_email(self, email: str) -> Account | None:
        """Find account by email (case-insensitive)."""
        row = self._db.execute_single(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = lower(%s)",
            (email,),
        )
        return _row_to_account(row) if row else None

    def create_account(self, email: str, role: Role = Role.USER) -> Account:
        """Create new account with email (lowercased)."""
        rows = self._db.execute_returning(
            f"""INSERT INTO accounts (email, role)
               VALUES (lower(%s), %s)
               RETURNING {_ACCOUNT_COLUMNS}""",
            (email, role.value),
        )
        return _row_to_account(rows[0])

    def upsert_account(self, email: str, role: Role) -> Account:
        """Create the account or set the role of the existing one."""
        rows = self._db.execute_returning(
            f"""INSERT INTO accounts (email, role)
               VALUES (lower(%s), %s)
               ON CONFLICT (email) DO UPDATE SET role = EXCLUDED.role
               RETURNING {_ACCOUNT_COLUMNS}""",
            (email, role.value),
        )
        return _row_to_account(rows[0])

    def update_last_login(self, account_id: UUID) -> None:
        """Update last_login_at to current time."""
        self._db.execute_returning(
            "UPDATE accounts SET last_login_at = %s WHERE id = %s RETURNING id",
            (now_utc(), account_id),
        )
