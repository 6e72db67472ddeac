# Supabase table: organizations
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- type: text (not null) - values: head_office, branch_office, department
- parent_id: uuid (foreign key to organizations.id, nullable)
- description: text (nullable)
- address: text (nullable)
- phone: text (nullable)
- is_active: boolean (not null, default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
