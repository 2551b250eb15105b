# Supabase tables: task_files, project_files; storage buckets: task-files, project-files
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

task_files:
- id: uuid (primary key)
- task_id: uuid (foreign key to tasks.id, on delete cascade)
- name: text (not null) - original file name
- file_path: text (not null) - "{task_id}/{epoch_ms}_{name}" inside the task-files bucket
- file_size: bigint
- mime_type: text
- uploaded_by: uuid (foreign key to profiles.id)
- created_at: timestamp (default: now())

project_files:
- same columns with project_id instead of task_id;
  file_path is "{project_id}/{epoch_ms}_{name}" inside the project-files bucket

Objects live in Supabase Storage by default, or under "<bucket>/<file_path>" in
S3_BUCKET_NAME when STORAGE_BACKEND=s3.
"""
