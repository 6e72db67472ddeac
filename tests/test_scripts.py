"""Tests for the seeding and site assignment scripts."""

from app.scripts import assign_sites, seed_sample_data


def test_seed_is_idempotent(db):
    for _ in range(2):
        organization_id = seed_sample_data.seed_organization(db)
        site_ids = seed_sample_data.seed_sites(db, organization_id)
        category_ids = seed_sample_data.seed_categories(db)
        material_ids = seed_sample_data.seed_materials(db, category_ids)
        seed_sample_data.seed_inventory(db, site_ids, material_ids)

    assert len(db.rows("organizations")) == 1
    assert len(db.rows("sites")) == len(seed_sample_data.SITES)
    assert len(db.rows("materials")) == len(seed_sample_data.MATERIALS)
    assert len(db.rows("material_inventory")) == len(seed_sample_data.SITES) * len(seed_sample_data.MATERIALS)


def test_assign_round_robin_skips_assigned_users(db, make_user, site, assign):
    second = db.add("sites", name="Songpa C Site", address="Seoul", status="active")
    already = make_user("worker")
    assign(already, site)
    fresh = [make_user("worker"), make_user("worker"), make_user("site_manager")]
    make_user("admin")

    users = assign_sites.get_unassigned_users(db)
    assert sorted(u["id"] for u in users) == sorted(u["id"] for u in fresh)

    created = assign_sites.assign_round_robin(db, users, assign_sites.get_active_site_ids(db))
    assert created == 3

    active = [a for a in db.rows("site_assignments") if a["is_active"]]
    assert len(active) == 4
    assert {a["site_id"] for a in active} == {site["id"], second["id"]}
    assert assign_sites.get_unassigned_users(db) == []
