# Supabase tables: projects, project_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

projects:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- color: text (nullable) - hex colour shown on the board
- owner_id: uuid (foreign key to profiles.id, not null)
- workspace_id: uuid (foreign key to workspaces.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

project_members:
- project_id: uuid (foreign key to projects.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id)
- role: text (default: 'member') - values: admin, member, viewer
- joined_at: timestamp (default: now())
- unique(project_id, user_id)
"""
