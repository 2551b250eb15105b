# Supabase tables: workspace_audit_log (plus read access to workspaces, profiles, projects, tasks)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
System administration works across every workspace and therefore runs with the
service role client. The audit trail table is documented in
app.modules.workspaces.models (workspace_audit_log).

Audit actions written here:
- WORKSPACE_DELETED: workspace_id/workspace_name of the removed workspace
- SYSTEM_ADMIN_PROMOTED / SYSTEM_ADMIN_DEMOTED: workspace_name = 'PLATFORM',
  details {<verb>_user_id, <verb>_user_email, <verb>_user_name, action_type}
"""
