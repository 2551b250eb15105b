# Supabase table: activity_log
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

activity_log:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id) - who did it
- project_id: uuid (nullable, foreign key to projects.id)
- task_id: uuid (nullable, foreign key to tasks.id)
- action: text (not null) - task_created, task_updated, status_changed,
  task_completed, task_deleted, comment_added, file_uploaded, file_deleted
- details: jsonb (default: {}) - e.g. {"title": ..., "from": ..., "to": ...}
- created_at: timestamp (default: now())
"""
