from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel
import models.shift  # Ensure these models are known by SQLModel for table creation
import models.time_off
import models.availability
from db.session import engine
from contextlib import asynccontextmanager
from api.schedule_builder_routes import router as schedule_builder_router
from api.time_off_routes import router as time_off_router
from api.employee_schedule_routes import router as employee_schedule_router
from core.config import LOG_LEVEL, allowed_origins
import logging
from dotenv import load_dotenv

# This file is the control center of the whole application

# Load environment variables from .env file, if it exists
load_dotenv()

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

allowed_origins_list = allowed_origins()
logger.info(f"[CORS] Allowing origins: {allowed_origins_list}")

# When We Start, Create the DB Tables if they don't exist
@asynccontextmanager
async def lifespan(app: FastAPI):

    SQLModel.metadata.create_all(engine)

    # (would do shutdown cleanup here if needed)
    yield


# Starts Fast API Up; Init
app = FastAPI(lifespan=lifespan)

# Allow requests from the scheduling front end (dev & production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Connects the scheduling routers to the main app
app.include_router(schedule_builder_router, prefix="/schedule-builder", tags=["Schedule Builder"])
app.include_router(time_off_router, prefix="/time-off", tags=["Time Off"])
app.include_router(employee_schedule_router, prefix="/schedule", tags=["Employee Schedule"])
