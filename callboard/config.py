from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    supabase_url: str
    supabase_key: str
    business_timezone: str = "America/New_York"
    calls_refresh_seconds: float = 60.0
    max_views: int = 500
    store_timeout_seconds: float = 30.0
    log_level: str = "INFO"
