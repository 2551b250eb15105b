# Supabase Auth owns auth.users; the application reads and writes public.profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles (one row per auth user, created by an on-signup trigger):
- id: uuid (primary key, references auth.users.id)
- email: text
- full_name: text (nullable)
- avatar_url: text (nullable)
- role: text (default: 'member') - values: super_admin, admin, manager, member
- workspace_id: uuid (foreign key to workspaces.id, nullable)
- is_system_admin: boolean (default: false)
- email_notifications_enabled: boolean (default: true)
- email_notification_types: jsonb (nullable) - {"task_assigned": false, ...}
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
