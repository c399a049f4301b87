import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    APP_NAME: str = os.getenv("APP_NAME", "Hotel Reservas")
    # Core settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Bearer tokens
    TOKEN_MAX_AGE_DAYS: int = int(os.getenv("TOKEN_MAX_AGE_DAYS", "7"))

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./hotel.db")
    CREATE_SCHEMA_ON_STARTUP: bool = os.getenv("CREATE_SCHEMA_ON_STARTUP", "false").lower() == "true"

    # CORS (SPA frontend origins)
    FRONT_ORIGINS: str = os.getenv(
        "FRONT_ORIGINS", "http://localhost:5173,http://localhost:5174,http://localhost:5175"
    )

    # Default admin bootstrap
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@hotel.local")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "admin12345")
    ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Administrador")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
    RATE_LIMIT_AUTH: str = os.getenv("RATE_LIMIT_AUTH", "10/minute")

    @property
    def front_origins_list(self) -> list[str]:
        return [o.strip() for o in self.FRONT_ORIGINS.split(",") if o.strip()]

settings = Settings()
