"""
Classroom LMS
FastAPI Application Entry Point

On startup:
1. Seeds the admin profile if not exists
2. Wires the learning store and the quiz session registry

On shutdown, live quiz sessions are closed without saving.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lms.config import settings
from lms.database import engine, AsyncSessionLocal
from lms.models.user import Profile, UserRole
from lms.services.auth_service import hash_password
from lms.services.session_registry import QuizSessionRegistry
from lms.services.sql_store import SqlLearningStore
from lms.services.user_service import get_user_by_email
from lms.api.auth import router as auth_router
from lms.api.classes import router as classes_router
from lms.api.materials import router as materials_router
from lms.api.quizzes import router as quizzes_router
from lms.api.analytics import router as analytics_router
from lms.api.announcements import router as announcements_router
from lms.api.assignments import router as assignments_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("classroom-lms")


async def seed_database():
    """Create the admin profile."""
    async with AsyncSessionLocal() as session:
        try:
            admin = await get_user_by_email(session, settings.ADMIN_EMAIL)

            if not admin:
                logger.info("Seeding database with admin profile...")
                admin = Profile(
                    email=settings.ADMIN_EMAIL,
                    password_hash=hash_password(settings.ADMIN_PASSWORD),
                    full_name=settings.ADMIN_FULL_NAME,
                    role=UserRole.ADMIN,
                )
                session.add(admin)
                await session.commit()
                logger.info(f"Admin profile created: {settings.ADMIN_EMAIL}")
            else:
                logger.info("Database already seeded (admin profile exists)")

        except Exception as e:
            logger.error(f"Database seeding failed: {e}")
            await session.rollback()
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info("Skipping create_all; ensure Alembic migrations are applied (alembic upgrade head)")

    await seed_database()

    store = SqlLearningStore(AsyncSessionLocal)
    app.state.store = store
    app.state.quiz_sessions = QuizSessionRegistry(
        store, tick_seconds=settings.QUIZ_TIMER_TICK_SECONDS
    )

    logger.info(f"{settings.APP_NAME} is ready!")
    logger.info("API docs: http://localhost:8000/docs")

    yield

    logger.info("Shutting down...")
    await app.state.quiz_sessions.close_all()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Classroom LMS: classes, materials, timed quizzes and engagement analytics",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routes
app.include_router(auth_router)
app.include_router(classes_router)
app.include_router(materials_router)
app.include_router(quizzes_router)
app.include_router(analytics_router)
app.include_router(announcements_router)
app.include_router(assignments_router)


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {
        "status": "online",
        "app": settings.APP_NAME,
        "version": "1.0.0",
    }


@app.get("/api/v1/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": "1.0.0",
        "live_quiz_sessions": len(app.state.quiz_sessions) if hasattr(app.state, "quiz_sessions") else 0,
    }
