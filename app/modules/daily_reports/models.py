# Supabase tables: daily_reports, daily_report_workers
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

daily_reports:
- id: uuid (primary key)
- site_id: uuid (foreign key to sites.id, not null)
- work_date: date (not null) - unique together with site_id
- member_name: text (not null) - structural member: slab, girder, column, other
- process_type: text (not null) - crack, surface, finishing, other
- total_workers: integer (nullable)
- npc1000_incoming / npc1000_used / npc1000_remaining: numeric (nullable)
- issues: text (nullable)
- notes: text (nullable) - approval comments
- status: text (not null, default: 'draft') - values: draft, submitted, approved, rejected
- created_by: uuid (foreign key to profiles.id)
- submitted_at: timestamp (nullable)
- approved_by: uuid (foreign key to profiles.id, nullable)
- approved_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

daily_report_workers:
- id: uuid (primary key)
- daily_report_id: uuid (foreign key to daily_reports.id, on delete cascade)
- worker_name: text (not null)
- work_hours: numeric (not null)
- created_at: timestamp (default: now())

Lifecycle: draft -> submitted -> approved | rejected; a rejected report
goes back to draft when its author edits it.
"""
