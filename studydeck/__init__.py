from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studydeck.config import settings
from studydeck.db import init_all_databases


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_all_databases(settings.data_dir)
    yield


def create_app() -> FastAPI:
    application = FastAPI(
        title="StudyDeck Backend", version="0.1.0", lifespan=lifespan
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from studydeck.routers import ai, documents, flashcards, health, progress, quizzes

    application.include_router(health.router)
    application.include_router(
        documents.router, prefix="/documents", tags=["documents"]
    )
    application.include_router(
        flashcards.router, prefix="/flashcards", tags=["flashcards"]
    )
    application.include_router(
        quizzes.router, prefix="/quizzes", tags=["quizzes"]
    )
    application.include_router(
        progress.router, prefix="/progress", tags=["progress"]
    )
    application.include_router(ai.router, prefix="/ai", tags=["ai"])

    return application


app = create_app()
