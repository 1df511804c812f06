"""Configuration loader for EventHub with environment-specific support"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL"),
    "port": int(os.getenv("PORT", "5000")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "jwt_secret": os.getenv("JWT_SECRET"),
    "jwt_expiry_hours": int(os.getenv("JWT_EXPIRY_HOURS", "24")),
    # Shared secret for operational endpoints (e.g. the expired-event sweep)
    "admin_api_key": os.getenv("ADMIN_API_KEY"),
    "frontend_url": os.getenv("FRONTEND_URL", "http://localhost:3000"),
    "otp_ttl_minutes": int(os.getenv("OTP_TTL_MINUTES", "10")),
    "reset_ttl_minutes": int(os.getenv("RESET_TTL_MINUTES", "60")),
    "verify_ttl_minutes": int(os.getenv("VERIFY_TTL_MINUTES", "60")),
    "mailgun_api_key": os.getenv("MAILGUN_API_KEY"),
    "mailgun_domain": os.getenv("MAILGUN_DOMAIN"),
    "sender_email": os.getenv("SENDER_EMAIL"),
    "environment": os.getenv("ENVIRONMENT"),
}
