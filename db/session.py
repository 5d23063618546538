import logging
import os

from dotenv import load_dotenv
from sqlmodel import Session, create_engine

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Connects app to PostgreSQL database (SQLite file when nothing is configured)

DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT", "5432")  # Default PostgreSQL port
DB_NAME = os.getenv("DB_NAME")
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
INSTANCE_CONNECTION_NAME = os.getenv("INSTANCE_CONNECTION_NAME")  # For Cloud SQL Proxy


def build_database_url() -> str:
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    if INSTANCE_CONNECTION_NAME:
        required = ["DB_NAME", "DB_USER", "DB_PASSWORD"]
        missing_vars = [var for var in required if not os.getenv(var)]
        if missing_vars:
            raise ValueError(
                f"Missing required environment variables for Cloud SQL (socket): {', '.join(missing_vars)}"
            )
        # Cloud SQL over a Unix socket
        return f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@/{DB_NAME}?host=/cloudsql/{INSTANCE_CONNECTION_NAME}"

    if DB_HOST:
        required = ["DB_NAME", "DB_USER", "DB_PASSWORD"]
        missing_vars = [var for var in required if not os.getenv(var)]
        if missing_vars:
            raise ValueError(f"Missing required environment variables for TCP: {', '.join(missing_vars)}")
        return f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"

    logger.warning("[DB] No database configured, falling back to local SQLite file scheduling.db")
    return "sqlite:///./scheduling.db"


DATABASE_URL = build_database_url()

# Note: echo=True will log all SQL statements, keep False in production
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True, connect_args=connect_args)


# One session per request, for FastAPI dependency injection
def get_session():
    with Session(engine) as session:
        yield session
