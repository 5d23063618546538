import os
from dotenv import load_dotenv

# Load environment variables from .env file, if it exists
load_dotenv()

# Every civil date in requests and every "local day" is read in this zone
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/New_York")

# CORS origins (dev and production front ends)
DEV_DOMAIN = os.getenv("DEV_DOMAIN", "http://localhost:5173")
PRODUCTION_DOMAIN = os.getenv("PRODUCTION_DOMAIN", "")

# Scheduling targets used for the over/under scheduled badge
TARGET_WEEKLY_HOURS = float(os.getenv("TARGET_WEEKLY_HOURS", "40"))
WEEKLY_HOURS_THRESHOLD = float(os.getenv("WEEKLY_HOURS_THRESHOLD", "5"))

# Firestore collection that holds the employee directory
EMPLOYEE_COLLECTION = os.getenv("EMPLOYEE_COLLECTION", "users")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def allowed_origins() -> list[str]:
    """Origins allowed by the CORS middleware, always including local dev."""
    origins = [
        DEV_DOMAIN,
        PRODUCTION_DOMAIN,
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]
    # Remove empty values and duplicates
    return sorted(set(origin for origin in origins if origin))
