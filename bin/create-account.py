"""Create an account from the command line.

Usage: uv run python bin/create-account.py <username> <email> [description]

The password is read from the terminal without echo.
"""

import asyncio
import getpass
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from accounts.auth.errors import AccountError
from accounts.auth.password import get_hasher
from accounts.auth.service import CredentialService
from accounts.auth.settings import AuthSettings
from accounts.db import Database, SqliteUserStore


async def main() -> None:
    if len(sys.argv) not in (3, 4):
        print(f"Usage: {sys.argv[0]} <username> <email> [description]")
        sys.exit(1)

    username, email = sys.argv[1], sys.argv[2]
    description = sys.argv[3] if len(sys.argv) == 4 else None

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("Error: Passwords do not match")
        sys.exit(1)

    auth_settings = AuthSettings()
    db = Database(auth_settings.database_path)
    db.connect()

    try:
        hasher = get_hasher(auth_settings.password_hasher, bcrypt_rounds=auth_settings.bcrypt_rounds)
        credential_service = CredentialService(SqliteUserStore(db), password_hasher=hasher)

        try:
            account = await credential_service.register(username, email, password, description)
        except AccountError as e:
            print(f"Error: {e.message}")
            sys.exit(1)

        print(f"Account created: {account.username} <{account.email}> (id: {account.id})")
    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
