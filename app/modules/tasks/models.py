# Supabase tables: tasks, task_assignees, subtasks, comments, labels, task_labels, task_dependencies
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in the service modules

"""
Expected Supabase table structure:

tasks:
- id: uuid (primary key)
- project_id: uuid (foreign key to projects.id, on delete cascade)
- title: text (not null)
- description: text (nullable)
- status: text (default: 'not_started') - not_started, in_progress, review, completed
- priority: text (default: 'medium') - low, medium, high, urgent
- position: integer - sort index within (project_id, status), 0 is the top
- due_date: timestamp (nullable)
- start_date: timestamp (nullable)
- estimated_hours: numeric (nullable)
- assignee_id: uuid (nullable) - legacy single assignee, superseded by task_assignees
- reminders: jsonb (nullable) - [{"type": "1_hour", "hours": -1}, ...]
- created_by: uuid (foreign key to profiles.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

task_assignees:
- task_id: uuid (foreign key to tasks.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id)

subtasks:
- id: uuid (primary key)
- task_id: uuid (foreign key to tasks.id, on delete cascade)
- title: text (not null)
- completed: boolean (default: false)
- position: integer
- assigned_to: uuid (nullable, foreign key to profiles.id)
- created_at: timestamp (default: now())

comments:
- id: uuid (primary key)
- task_id: uuid (foreign key to tasks.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id)
- content: text (not null)
- parent_id: uuid (nullable, foreign key to comments.id) - replies
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

labels / task_labels:
- labels: id, name, color
- task_labels: task_id, label_id

task_dependencies:
- id: uuid (primary key)
- blocking_task_id: uuid (foreign key to tasks.id)
- blocked_task_id: uuid (foreign key to tasks.id)
- created_at: timestamp (default: now())
"""
