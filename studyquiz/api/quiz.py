"""
Quiz API Routes
FastAPI endpoints for topics, quiz sessions, answers and reports
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from studyquiz.models.complete_session import CompleteSessionRequest
from studyquiz.models.quiz import DocumentError, PublicQuizItem, TopicSummary
from studyquiz.models.quiz_sessions import SessionReport
from studyquiz.models.start_session import StartSessionRequest, StartSessionResponse
from studyquiz.models.submit_answer import SubmitAnswerRequest, SubmitAnswerResponse
from studyquiz.services.content_service import ContentCatalog, UnknownTopicError
from studyquiz.services.quiz_engine import (
    AlreadyAnswered,
    SessionClosed,
    UnknownItem
)
from studyquiz.services.quiz_session_service import (
    QuizSessionService,
    SessionNotFoundError
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

def get_catalog(request: Request) -> ContentCatalog:
    """Dependency to get the catalog loaded at startup"""
    return request.app.state.catalog


def get_session_service(request: Request) -> QuizSessionService:
    """Dependency to get the QuizSessionService shared by all requests"""
    return request.app.state.session_service


# ============================================================================
# CONTENT ENDPOINTS
# ============================================================================

@router.get(
    "/topics",
    response_model=List[TopicSummary],
    tags=["Content"],
    summary="List topics"
)
async def list_topics(catalog: ContentCatalog = Depends(get_catalog)):
    """Topics (notes folders) with their quiz item counts"""
    return catalog.summaries()


@router.get(
    "/content/errors",
    response_model=List[DocumentError],
    tags=["Content"],
    summary="Documents that failed to parse"
)
async def list_content_errors(catalog: ContentCatalog = Depends(get_catalog)):
    """Per-document parse errors found while loading the notes"""
    return catalog.errors


# ============================================================================
# SESSION ENDPOINTS
# ============================================================================

@router.post(
    "/quiz/start-session",
    response_model=StartSessionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Quiz"],
    summary="Start a new quiz session",
    description="""
    Create a quiz session over one topic, or every topic when none is given.

    **Ordering:**
    - `sequential`: document order
    - `shuffled`: seeded permutation; the seed is returned so the run can be replayed
    """
)
async def start_quiz_session(
    request: StartSessionRequest,
    service: QuizSessionService = Depends(get_session_service)
) -> StartSessionResponse:
    try:
        session = service.start_session(
            topic=request.topic,
            order=request.order,
            seed=request.seed,
            limit=request.limit
        )

        return StartSessionResponse(
            sessionId=session.id,
            status=session.status,
            order=session.order,
            seed=session.seed,
            items=[PublicQuizItem.from_item(item) for item in session.items]
        )

    except UnknownTopicError as e:
        logger.warning(f"⚠️ {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except ValueError as e:
        logger.warning(f"⚠️ Cannot start session: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/quiz/submit-answer",
    response_model=SubmitAnswerResponse,
    tags=["Quiz"],
    summary="Submit an answer",
    responses={
        404: {"description": "Session or item not found"},
        409: {"description": "Item already answered or session completed"}
    }
)
async def submit_answer(
    request: SubmitAnswerRequest,
    service: QuizSessionService = Depends(get_session_service)
) -> SubmitAnswerResponse:
    """
    Record an answer; each item can be answered once per session

    The session completes automatically once every item is answered.
    """
    try:
        attempt, item, session = service.submit_answer(
            session_id=request.sessionId,
            item_id=request.itemId,
            chosen_label=request.chosenLabel
        )

        return SubmitAnswerResponse(
            isCorrect=attempt.is_correct,
            correctLabel=item.correct_label,
            explanation=item.explanation,
            status=session.status,
            remaining=service.remaining_count(session)
        )

    except (SessionNotFoundError, UnknownItem) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except (AlreadyAnswered, SessionClosed) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "/quiz/complete-session",
    response_model=SessionReport,
    tags=["Quiz"],
    summary="Finish a quiz session"
)
async def complete_session(
    request: CompleteSessionRequest,
    service: QuizSessionService = Depends(get_session_service)
) -> SessionReport:
    """Finish a session early (or explicitly) and return the final report"""
    try:
        return service.complete_session(request.sessionId)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except SessionClosed as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get(
    "/quiz/sessions/{session_id}/report",
    response_model=SessionReport,
    tags=["Quiz"],
    summary="Session report"
)
async def get_session_report(
    session_id: str,
    service: QuizSessionService = Depends(get_session_service)
) -> SessionReport:
    """Per-topic and overall accuracy; accuracy is null for unattempted topics"""
    try:
        return service.get_report(session_id)

    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
