# Supabase tables: profiles, signup_requests, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null)
- full_name: text (not null)
- phone: text (nullable)
- role: text (not null, default: 'worker') - values: worker, site_manager, customer_manager, admin, system_admin
- status: text (not null, default: 'active') - values: active, inactive, suspended
- organization_id: uuid (foreign key to organizations.id, nullable)
- company_name: text (nullable)
- avatar_url: text (nullable)
- notification_preferences: jsonb (nullable)
- last_login_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Deleting a user is a soft delete (status = 'inactive'); the auth.users row is kept
so historical reports and attendance keep their foreign keys.
"""
