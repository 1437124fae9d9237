from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Dobao Gourmet Reservations"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"
    TIMEZONE: str = "Europe/Madrid"

    # Storage: "local" (JSON file) or "supabase"
    STORAGE_BACKEND: str = "local"
    LOCAL_STORE_PATH: str = "data/reservations.json"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Security (empty token disables the admin API)
    ADMIN_TOKEN: str = ""

    # Gemini
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"

    # Venue business config
    VENUE_CONFIG_PATH: str = ""

    # Notifications
    SMTP_SERVER: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
