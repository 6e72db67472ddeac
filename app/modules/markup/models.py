# Supabase table: markup_documents
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

markup_documents:
- id: uuid (primary key)
- title: text (not null)
- description: text (nullable)
- original_blueprint_url: text (not null)
- original_blueprint_filename: text (not null)
- markup_data: jsonb (default: '[]') - list of markup objects, camelCase keys
- markup_count: integer (default: 0) - len(markup_data)
- location: text (default: 'personal') - values: personal, shared
- preview_image_url: text (nullable)
- created_by: uuid (foreign key to profiles.id)
- site_id: uuid (foreign key to sites.id, nullable) - creator's active site
- file_size: integer (default: 0)
- is_deleted: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
