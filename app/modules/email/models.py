# Supabase tables: email_logs, email_debug_log (plus email columns on profiles)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles (email columns):
- email_notifications_enabled: boolean (default: true)
- email_notification_types: jsonb (nullable) - {"task_assigned": false, ...}; missing keys mean enabled

email_logs:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id)
- recipient_email: text
- subject: text
- email_type: text
- notification_ids: uuid[]
- status: text - sent
- sent_at: timestamp

email_debug_log:
- id: uuid (primary key)
- user_id: uuid (nullable)
- notification_id: uuid (nullable)
- event_type: text - email_sent, email_failed, error_no_user, error_processing
- message: text
- error_details: text (nullable) - JSON encoded
- created_at: timestamp (default: now())
"""
