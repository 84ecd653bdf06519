"""
Seed Admin Profiles Script
Promotes existing profiles to an admin role so the first admin can manage
everyone else from the settings screen.
Usage: python -m app.scripts.seed_admin_profiles owner@example.com [--role ceo]
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.settings import settings
from app.config.permissions_config import ADMIN_ROLES, get_defaults_for_admin_role
from app.database.supabase_client import get_service_supabase
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def promote_profiles(supabase: Client, emails: list, role: str = "superadmin") -> int:
    """Give each matching profile an admin role plus every section and action"""
    if role not in ADMIN_ROLES:
        raise ValueError(f"{role} is not an admin role")

    defaults = get_defaults_for_admin_role()
    promoted_count = 0

    for email in emails:
        try:
            existing = supabase.table(settings.profiles_table)\
                .select("id")\
                .eq("email", email.lower())\
                .execute()

            if not existing.data:
                # Profiles are created on first sign-in
                logger.warning(f"No profile for {email}; the user must sign in once first")
                continue

            supabase.table(settings.profiles_table)\
                .update({
                    "role": role,
                    "sections": defaults["sections"],
                    "action_buttons": defaults["action_buttons"]
                })\
                .eq("id", existing.data[0]["id"])\
                .execute()
            promoted_count += 1
            logger.info(f"Promoted {email} to {role}")
        except Exception as e:
            logger.error(f"Error promoting {email}: {e}")

    logger.info(f"Admin profiles seeded: {promoted_count} of {len(emails)} promoted")
    return promoted_count


def main(argv=None):
    """Main function to promote admin profiles"""
    parser = argparse.ArgumentParser(description="Promote profiles to an admin role")
    parser.add_argument("emails", nargs="+")
    parser.add_argument("--role", default="superadmin", choices=sorted(ADMIN_ROLES))
    args = parser.parse_args(argv)

    try:
        supabase = get_service_supabase()
        promote_profiles(supabase, args.emails, args.role)
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
