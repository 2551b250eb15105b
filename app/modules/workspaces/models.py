# Supabase tables: workspaces, invite_links
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

workspaces:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- owner_id: uuid (foreign key to profiles.id, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

invite_links:
- id: uuid (primary key)
- code: text (unique, not null)
- workspace_id: uuid (foreign key to workspaces.id, not null)
- role: text (not null) - values: admin, manager, member
- max_uses: integer (nullable) - null means unlimited
- used_count: integer (default: 0)
- is_active: boolean (default: true)
- expires_at: timestamp (nullable)
- created_by: uuid (foreign key to profiles.id)
- created_at: timestamp (default: now())

workspace_audit_log:
- id: uuid (primary key)
- admin_id: uuid (foreign key to profiles.id)
- workspace_id: uuid (nullable)
- workspace_name: text - 'PLATFORM' for platform-level actions
- action: text - WORKSPACE_DELETED, SYSTEM_ADMIN_PROMOTED, SYSTEM_ADMIN_DEMOTED
- details: jsonb
- created_at: timestamp (default: now())
"""
