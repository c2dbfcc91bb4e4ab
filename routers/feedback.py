"""
Feedback Router

Endpoints:
  POST /get-feedback   — AI feedback on one free-text (essay) answer
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from generation.feedback_generator import FeedbackError, generate_feedback
from generation.schemas import ErrorResponse, FeedbackRequest, FeedbackResponse

router = APIRouter(tags=["feedback"])


@router.post(
    "/get-feedback",
    response_model=FeedbackResponse,
    responses={500: {"model": ErrorResponse}},
)
async def get_feedback(request: FeedbackRequest):
    try:
        text = await generate_feedback(request.question, request.user_answer, request.subject)
    except FeedbackError:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to generate feedback"},
        )
    return FeedbackResponse(feedback=text)
