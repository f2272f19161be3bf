"""
TRIAL TRACKER - Database Initialization Script
===============================================
Creates all database tables and provisions admin accounts.

Admin accounts cannot self-register; this script is the only way to
create one.

Usage:
    python scripts/init_database.py [--drop]
    python scripts/init_database.py --create-admin --username admin \\
        --email admin@example.org --first-name System --last-name Administrator

Options:
    --drop          Drop existing tables before creating (DESTRUCTIVE!)
    --create-admin  Provision an admin account (password prompted if omitted)
"""

import sys
import argparse
import getpass
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect

from trialtracker.auth import AuthService, Role
from trialtracker.database import get_db_manager
from trialtracker.errors import TrialTrackerError


def create_tables(drop_existing=False):
    """Create all database tables."""
    print("\n" + "=" * 60)
    print("CREATING DATABASE TABLES")
    print("=" * 60)

    db_manager = get_db_manager()
    db_manager.create_tables(drop_existing=drop_existing)

    tables = inspect(db_manager.engine).get_table_names()
    print(f"\n✅ {len(tables)} tables ready:")
    for table in sorted(tables):
        print(f"   • {table}")
    return tables


def create_admin(username, email, password, first_name, last_name, department=None):
    """Provision an admin account."""
    print("\n📋 Provisioning admin account...")

    with get_db_manager().session() as session:
        auth = AuthService(session)
        user = auth.provision_user({
            "username": username,
            "email": email,
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
            "department": department,
        }, role=Role.ADMIN)
        print(f"   Created admin user: {user.username} <{user.email}>")
    return True


def run_init(args):
    """Run database initialization."""
    print("\n" + "=" * 60)
    print("TRIAL TRACKER - DATABASE INITIALIZATION")
    print("=" * 60)

    db_manager = get_db_manager()
    print(f"\n🔗 Testing database connection ({db_manager.config.display_name})...")
    if not db_manager.health_check():
        print("   ❌ Connection failed")
        return False
    print("   Connection successful!")

    create_tables(drop_existing=args.drop)

    if args.create_admin:
        password = args.password or getpass.getpass("Admin password: ")
        try:
            create_admin(args.username, args.email, password,
                         args.first_name, args.last_name, args.department)
        except TrialTrackerError as e:
            print(f"\n❌ {e.message}")
            for message in e.messages:
                print(f"   • {message}")
            return False

    print("\n✅ Database ready!")
    return True


def main():
    parser = argparse.ArgumentParser(description="Initialize the Trial Tracker database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DESTRUCTIVE)")
    parser.add_argument("--create-admin", action="store_true", help="Provision an admin account")
    parser.add_argument("--username", help="Admin username")
    parser.add_argument("--email", help="Admin email")
    parser.add_argument("--password", help="Admin password (prompted if omitted)")
    parser.add_argument("--first-name", default="System", help="Admin first name")
    parser.add_argument("--last-name", default="Administrator", help="Admin last name")
    parser.add_argument("--department", help="Admin department")

    args = parser.parse_args()

    if args.create_admin and not (args.username and args.email):
        parser.error("--create-admin requires --username and --email")

    if args.drop:
        confirm = input("\n⚠️  This will DELETE all existing data. Type 'yes' to confirm: ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
    success = run_init(args)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
