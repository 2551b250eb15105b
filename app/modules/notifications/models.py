# Supabase table: notifications
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

notifications:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null) - recipient
- type: text (not null) - task_assigned, task_updated, task_comment, mention,
  project_invite, task_reminder, due_reminder
- title: text (not null)
- message: text (not null)
- task_id: uuid (nullable)
- project_id: uuid (nullable)
- actor_id: uuid (nullable) - user who triggered it
- read: boolean (default: false)
- created_at: timestamp (default: now())
"""
