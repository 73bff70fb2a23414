"""Administration script for Cellarbook.

Commands:
    user add        Add a new user
    user list       List all users
    user disable    Disable a user account
    user enable     Enable a user account
    user passwd     Change a user's password
    catalog refresh Reload the reference catalog from its CSV source
    catalog stats   Show catalog statistics
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from getpass import getpass

from cellarbook.config import settings
from cellarbook.database import close_db, init_db
from cellarbook.models.user import User
from cellarbook.services.auth import get_password_hash, get_user_by_email
from cellarbook.services.catalog import CatalogStore
from cellarbook.services.errors import IngestError, PersistenceError

logger = logging.getLogger(__name__)


# ============================================================================
# User commands
# ============================================================================


async def add_user(
    email: str,
    password: str,
    full_name: str | None = None,
    is_admin: bool = False,
) -> None:
    """Add a new user."""
    if await get_user_by_email(email):
        print(f"Error: User '{email}' already exists.")
        sys.exit(1)

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        is_superuser=is_admin,
        is_active=True,
    )
    await user.insert()

    role = "admin" if is_admin else "user"
    print(f"User '{email}' created successfully as {role}.")


async def list_users() -> None:
    """List all users."""
    users = await User.find_all().sort("+email").to_list()

    if not users:
        print("No users found.")
        return

    print(f"{'Email':<32} {'Name':<20} {'Admin':<6} {'Active':<6} {'Last Login':<20}")
    print("-" * 88)

    for user in users:
        last_login = user.last_login.strftime("%Y-%m-%d %H:%M") if user.last_login else "Never"
        admin = "Yes" if user.is_admin else "No"
        active = "Yes" if user.is_active else "No"
        print(f"{user.email:<32} {user.full_name or '':<20} {admin:<6} {active:<6} {last_login:<20}")


async def _require_user(email: str) -> User:
    user = await get_user_by_email(email)
    if not user:
        print(f"Error: User '{email}' not found.")
        sys.exit(1)
    return user


async def set_user_active(email: str, active: bool) -> None:
    """Enable or disable a user account."""
    user = await _require_user(email)
    state = "active" if active else "disabled"

    if user.is_active == active:
        print(f"User '{email}' is already {state}.")
        return

    user.is_active = active
    user.updated_at = datetime.now(timezone.utc)
    await user.save()
    print(f"User '{email}' is now {state}.")


async def change_password(email: str, password: str) -> None:
    """Change a user's password."""
    user = await _require_user(email)
    user.hashed_password = get_password_hash(password)
    user.updated_at = datetime.now(timezone.utc)
    await user.save()
    print(f"Password for user '{email}' has been updated.")


# ============================================================================
# Catalog commands
# ============================================================================


async def refresh_catalog(source: str | None = None) -> None:
    """Reload the catalog from ``source`` or the configured source file."""
    store = CatalogStore(settings.catalog_source_path)
    try:
        result = await store.refresh(source)
    except IngestError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if result.created_source:
        print(f"Created empty catalog source at {result.source}")
    print(
        f"Catalog generation {result.generation} loaded from {result.source}: "
        f"{result.entries} entries, {result.skipped} skipped."
    )


async def catalog_stats() -> None:
    """Print catalog statistics."""
    stats = await CatalogStore(settings.catalog_source_path).stats()
    if stats.generation is None:
        print("Catalog has not been loaded yet.")
        return

    refreshed = stats.refreshed_at.strftime("%Y-%m-%d %H:%M") if stats.refreshed_at else "unknown"
    print(f"Entries:     {stats.entry_count}")
    print(f"Generation:  {stats.generation}")
    print(f"Source:      {stats.source}")
    print(f"Refreshed:   {refreshed}")


# ============================================================================
# Entry point
# ============================================================================


def get_password_interactive(confirm: bool = True) -> str:
    """Get password interactively from user."""
    password = getpass("Password: ")
    if not password:
        print("Error: Password cannot be empty.")
        sys.exit(1)

    if confirm:
        password2 = getpass("Confirm password: ")
        if password != password2:
            print("Error: Passwords do not match.")
            sys.exit(1)

    return password


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="cellarbook-admin",
        description="Administration for Cellarbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    groups = parser.add_subparsers(dest="group", help="Command group")

    # User commands
    user_parser = groups.add_parser("user", help="Manage user accounts")
    user_commands = user_parser.add_subparsers(dest="command", help="User command")

    add_parser = user_commands.add_parser("add", help="Add a new user")
    add_parser.add_argument("email", help="Email address (login name)")
    add_parser.add_argument("--name", "-n", help="Full name")
    add_parser.add_argument("--admin", "-a", action="store_true", help="Make user an admin")
    add_parser.add_argument("--password", "-p", help="Password (will prompt if not provided)")

    user_commands.add_parser("list", help="List all users")

    disable_parser = user_commands.add_parser("disable", help="Disable a user account")
    disable_parser.add_argument("email", help="User to disable")

    enable_parser = user_commands.add_parser("enable", help="Enable a user account")
    enable_parser.add_argument("email", help="User to enable")

    passwd_parser = user_commands.add_parser("passwd", help="Change a user's password")
    passwd_parser.add_argument("email", help="User to change password for")
    passwd_parser.add_argument("--password", "-p", help="New password (will prompt if not provided)")

    # Catalog commands
    catalog_parser = groups.add_parser("catalog", help="Manage the reference catalog")
    catalog_commands = catalog_parser.add_subparsers(dest="command", help="Catalog command")

    refresh_parser = catalog_commands.add_parser("refresh", help="Reload the catalog")
    refresh_parser.add_argument("--source", "-s", help="CSV file to load instead of the configured one")

    catalog_commands.add_parser("stats", help="Show catalog statistics")

    return parser


async def run_command(args: argparse.Namespace) -> None:
    """Connect to the database and run one parsed command."""
    await init_db()
    try:
        if args.group == "user":
            if args.command == "add":
                password = args.password or get_password_interactive()
                await add_user(args.email, password, args.name, args.admin)
            elif args.command == "list":
                await list_users()
            elif args.command == "disable":
                await set_user_active(args.email, False)
            elif args.command == "enable":
                await set_user_active(args.email, True)
            elif args.command == "passwd":
                password = args.password or get_password_interactive()
                await change_password(args.email, password)
        elif args.group == "catalog":
            if args.command == "refresh":
                await refresh_catalog(args.source)
            elif args.command == "stats":
                await catalog_stats()
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.group or not getattr(args, "command", None):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(run_command(args))
    except PersistenceError as e:
        print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
