# Supabase table: task_templates
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

task_templates:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- title_template: text (nullable) - title given to tasks created from it
- description_template: text (nullable)
- priority: text (default: 'medium')
- status: text (default: 'not_started')
- due_date: timestamp (nullable)
- estimated_hours: numeric (nullable)
- subtasks: jsonb (default: []) - [{"title": "..."}]
- labels: jsonb (default: []) - label ids
- assignee_ids: jsonb (default: [])
- is_public: boolean (default: false) - visible to the whole workspace
- project_id: uuid (nullable)
- workspace_id: uuid (foreign key to workspaces.id)
- created_by: uuid (foreign key to profiles.id)
- use_count: integer (default: 0)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
