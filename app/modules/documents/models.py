# Supabase table: documents (+ Storage bucket "documents")
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

documents:
- id: uuid (primary key)
- title: text (not null)
- description: text (nullable)
- file_url: text (not null) - public URL in the documents bucket
- file_path: text (nullable) - object key, "<owner_id>/<timestamp>-<rand>.<ext>"
- file_name: text (not null) - original client file name
- file_size: integer
- mime_type: text
- document_type: text - values: personal, shared, blueprint, report, certificate, other
- folder_path: text (nullable)
- owner_id: uuid (foreign key to profiles.id)
- site_id: uuid (foreign key to sites.id, nullable)
- is_public: boolean (default: false)
- is_deleted: boolean (default: false) - soft delete flag
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
