# Supabase tables: attendance_records, attendance_locations
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

attendance_records:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- site_id: uuid (foreign key to sites.id, not null)
- work_date: date (not null) - site-local day; unique together with user_id and site_id
- check_in_time: time (nullable) - "HH:MM:SS"
- check_out_time: time (nullable)
- status: text (default: 'present') - values: present, absent, late, half_day, holiday
- work_hours: numeric (default: 0)
- overtime_hours: numeric (default: 0) - hours beyond 8
- labor_hours: numeric (default: 0) - day units, 1.0 == 8 hours
- work_type: text (nullable)
- notes: text (nullable)
- created_by: uuid (foreign key to profiles.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

attendance_locations:
- id: uuid (primary key)
- attendance_record_id: uuid (foreign key to attendance_records.id, on delete cascade)
- check_type: text - values: in, out
- latitude / longitude: numeric (not null)
- accuracy: numeric (nullable)
- address: text (nullable)
- device_info: text (nullable)
- ip_address: text (nullable)
- created_at: timestamp (default: now())
"""
