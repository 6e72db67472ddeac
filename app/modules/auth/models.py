# Supabase Auth + tables: profiles, signup_requests
# Sessions and passwords are handled by Supabase Auth (auth.users);
# this module only reads profiles and writes signup_requests.

"""
Supabase Auth provides:
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve the current user from a JWT
- auth.sign_out() - Logout users
- auth.admin.create_user() / update_user_by_id() - service-role only

signup_requests:
- id: uuid (primary key)
- full_name: text (not null)
- email: text (not null)
- phone: text (nullable)
- company_name: text (nullable)
- requested_role: text (not null, default: 'worker')
- status: text (not null, default: 'pending') - values: pending, approved, rejected
- rejection_reason: text (nullable)
- approved_by: uuid (foreign key to profiles.id, nullable)
- approved_at: timestamp (nullable)
- created_at: timestamp (default: now())
"""
