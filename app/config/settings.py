from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for invitations, password resets and admin deletes

    # Object storage for attachments
    storage_backend: str = "supabase"  # supabase | s3
    task_files_bucket: str = "task-files"
    project_files_bucket: str = "project-files"

    # AWS S3 (only when storage_backend == "s3")
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Transactional email
    email_provider: str = "resend"  # resend | sendgrid | none
    resend_api_key: Optional[str] = None
    sendgrid_api_key: Optional[str] = None
    from_email: str = "onboarding@resend.dev"
    from_name: str = "TaskFlow"
    email_timeout_seconds: float = 10.0
    send_notification_emails: bool = True

    # Reminders
    reminder_checker_enabled: bool = False
    reminder_interval_seconds: int = 300
    reminder_tolerance_hours: float = 0.5

    # Notifications / offline client
    notification_list_limit: int = 50
    offline_max_retries: int = 3

    # App
    app_name: str = "taskflow-backend"
    app_url: str = "http://localhost:5173"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
