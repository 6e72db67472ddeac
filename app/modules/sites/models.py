# Supabase tables: sites, site_assignments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

sites:
- id: uuid (primary key)
- name: text (not null)
- address: text (not null)
- description: text (nullable)
- organization_id: uuid (foreign key to organizations.id, nullable)
- work_process: text (nullable) - e.g. slab pouring, rebar placement
- work_section: text (nullable) - e.g. B1, building B 3F
- component_name: text (nullable)
- manager_name / construction_manager_phone: text (nullable)
- safety_manager_name / safety_manager_phone: text (nullable)
- accommodation_name / accommodation_address: text (nullable)
- status: text (not null, default: 'active') - values: active, inactive, completed
- start_date: date (not null)
- end_date: date (nullable)
- created_by: uuid (foreign key to profiles.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

site_assignments:
- id: uuid (primary key)
- site_id: uuid (foreign key to sites.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- role: text (default: 'worker') - values: worker, site_manager, supervisor
- assigned_date: date (not null)
- unassigned_date: date (nullable)
- is_active: boolean (not null, default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

A user has at most one active assignment (partial unique index on
user_id where is_active); assigning closes the previous one first.
"""
