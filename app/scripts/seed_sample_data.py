"""
Seed Sample Data Script
Creates a head office, sample sites, the NPC-1000 material catalog and
opening inventory for each site. Safe to run repeatedly: existing rows
(matched by name or code) are left as they are.

    python -m app.scripts.seed_sample_data
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import get_service_supabase
from supabase import Client
from typing import Dict, List
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


ORGANIZATION = {"name": "INOPNC Head Office", "type": "head_office", "address": "Seoul"}

SITES = [
    {"name": "Gangnam A Site", "address": "123 Teheran-ro, Gangnam-gu, Seoul", "start_date": "2025-01-06"},
    {"name": "Songpa C Site", "address": "45 Olympic-ro, Songpa-gu, Seoul", "start_date": "2025-02-03"},
    {"name": "Seocho B Site", "address": "88 Seocho-daero, Seocho-gu, Seoul", "start_date": "2025-03-10"},
]

CATEGORIES = [
    {"code": "NPC-01", "name": "Cement", "level": 1},
    {"code": "NPC-02", "name": "Rebar", "level": 1},
    {"code": "NPC-03", "name": "Ready-mixed concrete", "level": 1},
    {"code": "NPC-04", "name": "Waterproofing", "level": 1},
    {"code": "NPC-05", "name": "Insulation", "level": 1},
]

MATERIALS = [
    {"category": "NPC-01", "material_code": "NPC-1000", "name": "NPC-1000 crack repair compound", "unit": "kg", "unit_price": 4800},
    {"category": "NPC-01", "material_code": "NPC-01-001", "name": "Portland cement type I", "unit": "ton", "unit_price": 150000},
    {"category": "NPC-02", "material_code": "NPC-1001", "name": "Rebar D19", "unit": "ton", "unit_price": 950000},
    {"category": "NPC-02", "material_code": "NPC-1005", "name": "Rebar D13", "unit": "ton", "unit_price": 980000},
    {"category": "NPC-03", "material_code": "NPC-1002", "name": "Ready-mix 24-210-12", "unit": "m3", "unit_price": 85000},
    {"category": "NPC-04", "material_code": "NPC-1003", "name": "Waterproof sheet 2mm", "unit": "m2", "unit_price": 12000},
    {"category": "NPC-05", "material_code": "NPC-1004", "name": "EPS insulation 50mm", "unit": "m2", "unit_price": 8500},
]

OPENING_STOCK = {"current_stock": 100, "minimum_stock": 20, "maximum_stock": 500}


def seed_organization(supabase: Client) -> str:
    """Create the head office if missing and return its id"""
    existing = supabase.table("organizations")\
        .select("id")\
        .eq("name", ORGANIZATION["name"])\
        .execute()
    if existing.data:
        logger.info(f"Organization exists: {ORGANIZATION['name']}")
        return existing.data[0]["id"]
    result = supabase.table("organizations").insert({**ORGANIZATION, "is_active": True}).execute()
    logger.info(f"Created organization: {ORGANIZATION['name']}")
    return result.data[0]["id"]


def seed_sites(supabase: Client, organization_id: str) -> List[str]:
    """Create sample sites and return all of their ids"""
    site_ids = []
    created_count = 0
    for site in SITES:
        try:
            existing = supabase.table("sites")\
                .select("id")\
                .eq("name", site["name"])\
                .execute()
            if existing.data:
                site_ids.append(existing.data[0]["id"])
                continue
            result = supabase.table("sites").insert({
                **site,
                "organization_id": organization_id,
                "status": "active"
            }).execute()
            site_ids.append(result.data[0]["id"])
            created_count += 1
            logger.debug(f"Created site: {site['name']}")
        except Exception as e:
            logger.error(f"Error processing site {site['name']}: {e}")
    logger.info(f"Sites seeded: {created_count} created, {len(site_ids) - created_count} existing")
    return site_ids


def seed_categories(supabase: Client) -> Dict[str, str]:
    """Create material categories; returns code -> id"""
    by_code = {}
    for category in CATEGORIES:
        try:
            existing = supabase.table("material_categories")\
                .select("id")\
                .eq("code", category["code"])\
                .execute()
            if existing.data:
                by_code[category["code"]] = existing.data[0]["id"]
                continue
            result = supabase.table("material_categories").insert({**category, "is_active": True}).execute()
            by_code[category["code"]] = result.data[0]["id"]
            logger.debug(f"Created category: {category['code']}")
        except Exception as e:
            logger.error(f"Error processing category {category['code']}: {e}")
    logger.info(f"Material categories ready: {len(by_code)}")
    return by_code


def seed_materials(supabase: Client, category_ids: Dict[str, str]) -> List[str]:
    """Create catalog materials and return their ids"""
    material_ids = []
    for material in MATERIALS:
        try:
            existing = supabase.table("materials")\
                .select("id")\
                .eq("material_code", material["material_code"])\
                .execute()
            if existing.data:
                material_ids.append(existing.data[0]["id"])
                continue
            row = {k: v for k, v in material.items() if k != "category"}
            result = supabase.table("materials").insert({
                **row,
                "category_id": category_ids.get(material["category"]),
                "is_active": True
            }).execute()
            material_ids.append(result.data[0]["id"])
            logger.debug(f"Created material: {material['material_code']}")
        except Exception as e:
            logger.error(f"Error processing material {material['material_code']}: {e}")
    logger.info(f"Materials ready: {len(material_ids)}")
    return material_ids


def seed_inventory(supabase: Client, site_ids: List[str], material_ids: List[str]) -> int:
    """Give every site an opening stock row for every material"""
    created_count = 0
    for site_id in site_ids:
        existing = supabase.table("material_inventory")\
            .select("material_id")\
            .eq("site_id", site_id)\
            .execute()
        stocked = {r["material_id"] for r in (existing.data or [])}
        new_rows = [
            {"site_id": site_id, "material_id": mid, **OPENING_STOCK}
            for mid in material_ids
            if mid not in stocked
        ]
        if new_rows:
            try:
                supabase.table("material_inventory").insert(new_rows).execute()
                created_count += len(new_rows)
            except Exception as e:
                logger.error(f"Error seeding inventory for site {site_id}: {e}")
    logger.info(f"Inventory rows created: {created_count}")
    return created_count


def main():
    """Main function to seed sample data"""
    try:
        supabase = get_service_supabase()

        logger.info("Starting sample data seeding...")

        organization_id = seed_organization(supabase)
        site_ids = seed_sites(supabase, organization_id)
        category_ids = seed_categories(supabase)
        material_ids = seed_materials(supabase, category_ids)
        inventory_count = seed_inventory(supabase, site_ids, material_ids)

        logger.info("Seeding completed successfully!")
        logger.info(f"Total: {len(site_ids)} sites, {len(material_ids)} materials, {inventory_count} new inventory rows")

    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
