"""
Generation Router

Endpoints:
  POST /generate-questions   — generate a quiz from notes + question counts
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from generation.orchestrator import (
    GenerationFailedError,
    GenerationInputError,
    run_generation,
)
from generation.schemas import ErrorResponse, GenerateQuestionsRequest, GenerationResult

router = APIRouter(tags=["generation"])

log = logging.getLogger("generation.pipeline")


def _error(status_code: int, error: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post(
    "/generate-questions",
    response_model=GenerationResult,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_questions(request: GenerateQuestionsRequest):
    """
    **Generate quiz questions from study notes.**

    Questions are produced type by type in small batches (MCQ/TF 5, MATCHING 2,
    ESSAY 3 per call). A failed batch is skipped, so the response can hold fewer
    questions than requested — compare `generated` with `requested`.

    - 400: no questions requested, more than 50, or notes under 100 characters
    - 500: no valid question could be generated
    """
    try:
        return await run_generation(request)
    except GenerationInputError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except GenerationFailedError as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e), e.details or None)
    except Exception as e:
        log.exception(f"[GENERATE] Unexpected error: {e}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to generate questions. Please try again.",
            str(e),
        )
