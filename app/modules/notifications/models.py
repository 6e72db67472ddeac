# Supabase table: notifications
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

notifications:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null) - recipient
- type: text - values: info, success, warning, error, system
- title: text (not null)
- message: text (not null)
- data: jsonb (nullable)
- read: boolean (default: false)
- read_at: timestamp (nullable)
- created_by: uuid (foreign key to profiles.id, nullable) - null for system notices
- related_entity_type: text (nullable) - daily_report, material_request, site, ...
- related_entity_id: text (nullable)
- action_url: text (nullable) - frontend route to open
- created_at: timestamp (default: now())
"""
