"""
Quiz Generator API — Main Application
FastAPI application that turns study notes into quizzes with a hosted LLM
and gives feedback on essay answers.
"""

from dotenv import load_dotenv
load_dotenv()

import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from routers import feedback, generation

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s  %(levelname)s  %(message)s",
)

app = FastAPI(
    title="Quiz Generator API",
    description="Batch quiz generation from study notes and AI feedback on answers",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors: 400 with the same {error, details} shape."""
    details = [
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": details},
    )


# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(generation.router)   # /generate-questions
app.include_router(feedback.router)     # /get-feedback


@app.get("/")
def root():
    return {
        "name": "Quiz Generator API",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "generate": "/generate-questions",
            "feedback": "/get-feedback",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "quiz-generator-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8001")))
