# Supabase tables: material_categories, materials, material_inventory,
# material_transactions, material_requests, material_request_items
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

material_categories:
- id: uuid (primary key)
- name: text (not null)
- code: text (unique) - NPC-1000 code, e.g. "NPC-01-01"
- description: text (nullable)
- level: integer (default: 1)
- parent_id: uuid (foreign key to material_categories.id, nullable)
- is_active: boolean (default: true)

materials:
- id: uuid (primary key)
- category_id: uuid (foreign key to material_categories.id)
- name: text (not null)
- description: text (nullable)
- material_code: text (unique, not null)
- unit: text (not null) - ton, m3, kg, ea, ...
- unit_price: numeric (nullable)
- supplier: text (nullable)
- is_active: boolean (default: true)
- created_at / updated_at: timestamp

material_inventory:
- id: uuid (primary key)
- site_id: uuid (foreign key to sites.id) - unique together with material_id
- material_id: uuid (foreign key to materials.id)
- current_stock: numeric (not null, check >= 0)
- minimum_stock: numeric (nullable)
- maximum_stock: numeric (nullable)
- last_updated: timestamp

material_transactions:
- id: uuid (primary key)
- site_id, material_id: uuid
- transaction_type: text - values: in, out, return, waste, adjustment
- quantity: numeric - positive, except adjustment which is a signed delta
- reference_type / reference_id: text (nullable) - e.g. material_request
- notes: text (nullable)
- performed_by: uuid (foreign key to profiles.id)
- created_at: timestamp (default: now())

material_requests:
- id: uuid (primary key)
- site_id: uuid
- requested_by: uuid (foreign key to profiles.id)
- required_date: date
- priority: text - values: urgent, high, normal, low
- status: text (default: 'pending') - pending, approved, rejected, ordered, delivered
- notes: text (nullable)
- approved_by: uuid (nullable)
- approved_at: timestamp (nullable)
- created_at / updated_at: timestamp

material_request_items:
- id: uuid (primary key)
- request_id: uuid (foreign key to material_requests.id, on delete cascade)
- material_id: uuid
- requested_quantity: numeric (> 0)
- notes: text (nullable)
"""
