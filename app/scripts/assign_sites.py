"""
Assign Sites Script
Gives every active worker without an active site assignment one of the
active sites, round-robin. Users already assigned are not touched, so a
user never ends up with two active assignments.

    python -m app.scripts.assign_sites
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.core.time_utils import today_iso
from app.database.supabase_client import get_service_supabase
from supabase import Client
from typing import List, Dict
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = ["worker", "site_manager"]


def get_unassigned_users(supabase: Client) -> List[Dict]:
    users = supabase.table("profiles")\
        .select("id, email, role")\
        .in_("role", ASSIGNABLE_ROLES)\
        .eq("status", "active")\
        .order("created_at")\
        .execute()
    assigned = supabase.table("site_assignments")\
        .select("user_id")\
        .eq("is_active", True)\
        .execute()
    assigned_ids = {a["user_id"] for a in (assigned.data or [])}
    return [u for u in (users.data or []) if u["id"] not in assigned_ids]


def get_active_site_ids(supabase: Client) -> List[str]:
    sites = supabase.table("sites")\
        .select("id")\
        .eq("status", "active")\
        .order("created_at")\
        .execute()
    return [s["id"] for s in (sites.data or [])]


def assign_round_robin(supabase: Client, users: List[Dict], site_ids: List[str]) -> int:
    """Assign users to sites in turn; returns the number of assignments created"""
    today = today_iso()
    assigned_count = 0
    for index, user in enumerate(users):
        site_id = site_ids[index % len(site_ids)]
        try:
            supabase.table("site_assignments").insert({
                "site_id": site_id,
                "user_id": user["id"],
                "role": user["role"],
                "assigned_date": today,
                "is_active": True
            }).execute()
            assigned_count += 1
            logger.debug(f"Assigned {user['email']} to site {site_id}")
        except Exception as e:
            logger.error(f"Error assigning {user['email']}: {e}")
    return assigned_count


def main():
    """Main function to assign unassigned users to sites"""
    try:
        supabase = get_service_supabase()

        site_ids = get_active_site_ids(supabase)
        if not site_ids:
            logger.warning("No active sites; nothing to assign")
            return

        users = get_unassigned_users(supabase)
        logger.info(f"{len(users)} users without an active site, {len(site_ids)} active sites")

        assigned_count = assign_round_robin(supabase, users, site_ids)
        logger.info(f"Assignment completed: {assigned_count} users assigned")

    except Exception as e:
        logger.error(f"Error during site assignment: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
