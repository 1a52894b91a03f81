from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Eventify"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"
    TIMEZONE: str = "Asia/Kolkata"
    CURRENCY_SYMBOL: str = "₹"

    # Security
    SECRET_KEY: str = "dev_secret_key"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    DEFAULT_ADMIN_PASSWORD: str = "admin"
    DEFAULT_USER_PASSWORD: str = "password"

    # Storage ("local" JSON file or "supabase")
    STORE_BACKEND: str = "local"
    LOCAL_STORE_PATH: str = "data/eventify_store.json"
    STUDIO_CONFIG_PATH: str = "data/studio_config.json"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Google GenAI
    GOOGLE_GENAI_API_KEY: str = ""
    GENAI_MODEL: str = "gemini-2.5-flash"
    GENAI_TIMEOUT: float = 20.0

    # Backup / Restore
    RESTORE_BATCH_SIZE: int = 450
    RESTORE_BATCH_PAUSE: float = 0.1
    BACKUP_EMAIL: str = ""

    # GoSMS / SMTP credentials are read by notification_service from .env

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
