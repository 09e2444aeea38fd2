import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from video_insight.api.routes.analysis import router as analysis_router
from video_insight.api.routes.chat import router as chat_router
from video_insight.api.routes.search import router as search_router
from video_insight.api.routes.transcript import router as transcript_router
from video_insight.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Video Insight API",
    description="Transcript analysis, visual search and chat for YouTube videos",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
    ],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(transcript_router)
app.include_router(analysis_router)
app.include_router(search_router)
app.include_router(chat_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
