"""Storefront management CLI.

Usage:
    python src/manage.py setup-db                 # Create all tables
    python src/manage.py drop-db                  # Drop all tables
    python src/manage.py grant-admin <external_id> # Make a user an admin
    python src/manage.py revoke-admin <external_id>
"""

import argparse
import sys

from storefront.domain import storefront


def setup_database():
    """Create the database schema for the storefront domain."""
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Creating database schema...")
    setup_db(storefront)
    print("Done.")


def drop_database():
    """Drop the database schema for the storefront domain."""
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Dropping database schema...")
    drop_db(storefront)
    print("Done.")


def change_role(external_id, role):
    """Grant ``role`` to the user known by ``external_id``.

    The user must have signed in at least once so that a local record exists.
    """
    from storefront.errors import StorefrontError
    from storefront.user.roles import GrantRole

    storefront.init()
    with storefront.domain_context():
        try:
            user_id = storefront.process(GrantRole(external_id=external_id, role=role), asynchronous=False)
        except StorefrontError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            sys.exit(1)
    print(f"User {user_id} ({external_id}) now has role {role}.")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    grant_parser = subparsers.add_parser("grant-admin", help="Give a user the admin role")
    grant_parser.add_argument("external_id", help="Identity provider subject of the user")

    revoke_parser = subparsers.add_parser("revoke-admin", help="Return an admin to the customer role")
    revoke_parser.add_argument("external_id", help="Identity provider subject of the user")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "grant-admin":
        change_role(args.external_id, "admin")
    elif args.command == "revoke-admin":
        change_role(args.external_id, "customer")
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
