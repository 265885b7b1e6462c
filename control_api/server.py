"""
HTTP server for the narration control API.
"""
from fastapi import FastAPI

from .narration_api import router as narration_router


app = FastAPI(title="Recipe Narrator Control API")
app.include_router(narration_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
