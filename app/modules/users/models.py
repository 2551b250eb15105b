# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Users are rows of the profiles table documented in app.modules.auth.models.

Columns this module writes:
- full_name, avatar_url: self-service profile edits
- role: workspace role, changed by workspace admins
- email_notifications_enabled: boolean master switch for notification emails
- email_notification_types: jsonb map of notification type -> bool; a type is
  disabled only when its key is explicitly false

Invitations create the auth user through the admin API (service role key) with
user_metadata {full_name, role, invited: true}; the on-signup trigger creates the
profile, which the service then verifies and repairs if needed.
"""
