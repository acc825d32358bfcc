#!/usr/bin/env python3
"""User management utility for the ijazah platform.

This utility provides command-line tools for inspecting accounts, changing
roles, validating the platform seed file and running housekeeping jobs
directly against the record store.

Created: 2026-10-12
Version: 1.0.0
License: MIT

Usage:
    python admin/user_management.py list-users [--role scholar]
    python admin/user_management.py show-user <email>
    python admin/user_management.py grant-role <email> <role>
    python admin/user_management.py revoke-role <email> <role>
    python admin/user_management.py validate-config [path]
    python admin/user_management.py expire-stale
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ijazah_api import application_service, profile_service
from ijazah_api.auth import find_profile_by_email
from ijazah_api.config import config
from ijazah_api.exceptions import IjazahError, PlatformConfigError
from ijazah_api.platform_config import get_platform_config_path, load_platform_config
from ijazah_api.policy import VALID_ROLES, normalize_roles
from ijazah_api.store import JsonStore


def open_store(data_dir: Optional[str]) -> JsonStore:
    return JsonStore(Path(data_dir) if data_dir else config.DATA_DIR)


def list_users(store: JsonStore, role: Optional[str] = None) -> bool:
    """List all accounts and their roles."""
    try:
        users = profile_service.list_users(store, role)
    except IjazahError as e:
        print(f"❌ Error listing users: {e.detail}")
        return False

    print("📋 User List")
    print("=" * 70)
    for user in users:
        enabled = "✅" if user.get("enabled", True) else "❌"
        roles = ", ".join(normalize_roles(user.get("roles")))
        print(f"{enabled} {user['email']:<35} {roles}")
    print(f"\nTotal users: {len(users)}")
    return True


def show_user(store: JsonStore, email: str) -> bool:
    """Show detailed information for one account."""
    profile = find_profile_by_email(store, email)
    if not profile:
        print(f"❌ User '{email}' not found")
        return False

    print(f"👤 User Details: {email}")
    print("=" * 50)
    print(f"User ID:       {profile['id']}")
    print(f"Full Name:     {profile.get('full_name') or 'N/A'}")
    print(f"Arabic Name:   {profile.get('full_name_arabic') or 'N/A'}")
    print(f"Phone:         {profile.get('phone_number') or 'N/A'}")
    print(f"Roles:         {', '.join(normalize_roles(profile.get('roles')))}")
    print(f"Enabled:       {'Yes' if profile.get('enabled', True) else 'No'}")
    print(f"Created:       {profile.get('created_at', 'N/A')}")

    applications = store.list("ijazah_applications", user_id=profile["id"])
    certificates = store.list("ijazah_certificates", user_id=profile["id"])
    print(f"\n📄 Applications: {len(applications)}")
    for application in applications:
        print(f"  • {application['application_number']} {application['ijazah_type']:<8} {application['status']}")
    print(f"🎓 Certificates: {len(certificates)}")
    for certificate in certificates:
        print(f"  • {certificate['certificate_number']} {certificate['status']}")

    scholar = store.get("scholars", profile["id"])
    if scholar:
        print("\n📚 Scholar Record")
        print(f"  Specialization:  {scholar.get('specialization')}")
        print(f"  Active:          {'Yes' if scholar.get('is_active') else 'No'}")
        print(f"  Ijazat issued:   {scholar.get('total_ijazat_issued', 0)}")
        print(f"  Acceptance rate: {scholar.get('acceptance_rate', 0)}%")
    return True


def change_role(store: JsonStore, email: str, role: str, grant: bool) -> bool:
    """Grant or revoke a role."""
    profile = find_profile_by_email(store, email)
    if not profile:
        print(f"❌ User '{email}' not found")
        return False
    try:
        if grant:
            updated = profile_service.grant_role(store, profile["id"], role)
        else:
            updated = profile_service.revoke_role(store, profile["id"], role)
    except IjazahError as e:
        print(f"❌ Could not update roles: {e.detail}")
        return False

    action = "granted to" if grant else "revoked from"
    print(f"✅ Role '{role}' {action} {email}")
    print(f"   Roles: {', '.join(updated['roles'])}")
    return True


def validate_config(path: Optional[str] = None) -> bool:
    """Validate the platform seed configuration file."""
    print("🔍 Validating Configuration")
    print("=" * 50)
    print(f"File: {get_platform_config_path(path)}")

    try:
        data = load_platform_config(path)
    except PlatformConfigError as e:
        print(f"❌ Configuration validation failed: {e.detail}")
        return False
    print("✅ Configuration file loaded and matches the schema")

    narrators = sum(len(item["narrators"]) for item in data["narrations"])
    print(f"\n📖 {len(data['narrations'])} readings, {narrators} narrators")

    accounts = data.get("accounts", [])
    print(f"\n👥 Checking {len(accounts)} bootstrap accounts:")
    for account in accounts:
        password_env = account["password_env"]
        if os.environ.get(password_env):
            print(f"  ✅ {account['email']}: {password_env} is set")
        else:
            print(f"  ⚠️  {account['email']}: {password_env} is not set (account will be skipped)")

    print("\n🎉 Configuration validation completed successfully!")
    return True


def expire_stale(store: JsonStore) -> bool:
    """Expire approved applications that never received a certificate."""
    expired = application_service.expire_stale_applications(store)
    print(f"⏰ Expired {len(expired)} applications "
          f"(approved more than {config.APPLICATION_EXPIRY_DAYS} days ago)")
    for application_id in expired:
        print(f"  • {application_id}")
    return True


def main(argv=None):
    """Main entry point for the user management utility."""
    parser = argparse.ArgumentParser(
        description="User Management Utility for the Ijazah Platform",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python admin/user_management.py list-users --role scholar
  python admin/user_management.py show-user student@example.com
  python admin/user_management.py grant-role sheikh@example.com scholar
  python admin/user_management.py validate-config config/platform.yml
        """
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help=f"Record store directory (default: {config.DATA_DIR})"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    list_parser = subparsers.add_parser("list-users", help="List all users")
    list_parser.add_argument("--role", choices=VALID_ROLES, help="Only users with this role")

    show_parser = subparsers.add_parser("show-user", help="Show detailed user information")
    show_parser.add_argument("email", help="Email of the account")

    for name, help_text in (("grant-role", "Grant a role"), ("revoke-role", "Revoke a role")):
        role_parser = subparsers.add_parser(name, help=help_text)
        role_parser.add_argument("email", help="Email of the account")
        role_parser.add_argument("role", choices=VALID_ROLES, help="Role name")

    validate_parser = subparsers.add_parser("validate-config", help="Validate the platform seed file")
    validate_parser.add_argument("path", nargs="?", default=None, help="Seed file to validate")

    subparsers.add_parser("expire-stale", help="Expire approved applications without a certificate")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "validate-config":
            success = validate_config(args.path)
        else:
            store = open_store(args.data_dir)
            if args.command == "list-users":
                success = list_users(store, args.role)
            elif args.command == "show-user":
                success = show_user(store, args.email)
            elif args.command == "grant-role":
                success = change_role(store, args.email, args.role, grant=True)
            elif args.command == "revoke-role":
                success = change_role(store, args.email, args.role, grant=False)
            elif args.command == "expire-stale":
                success = expire_stale(store)
            else:
                print(f"❌ Unknown command: {args.command}")
                return 1

        return 0 if success else 1

    except KeyboardInterrupt:
        print("\n\n⚠️  Operation cancelled by user")
        return 1
    except IjazahError as e:
        print(f"\n❌ {e.error}: {e.detail}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
