"""Resolution reviews and helpfulness votes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from .. import reviews as review_service
from ..auth import Actor, get_actor
from ..database import get_session
from ..schemas import ReviewCreate, ReviewPublic, VotePublic, VoteRequest

router = APIRouter(prefix="/api/v1", tags=["reviews"])


@router.get("/complaints/{complaint_id}/reviews", response_model=List[ReviewPublic])
async def list_reviews(complaint_id: str, actor: Actor = Depends(get_actor), session=Depends(get_session)):
    summaries = await review_service.list_reviews(session, complaint_id)
    return [ReviewPublic.from_summary(summary) for summary in summaries]


@router.post(
    "/complaints/{complaint_id}/reviews",
    response_model=ReviewPublic,
    status_code=status.HTTP_201_CREATED,
)
async def add_review(
    complaint_id: str,
    body: ReviewCreate,
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    review = await review_service.add_review(session, actor, complaint_id, body.content, body.rating)
    return ReviewPublic.from_summary(review_service.summarize(review))


@router.put("/reviews/{review_id}/vote", response_model=VotePublic)
async def vote_on_review(
    review_id: str,
    body: VoteRequest,
    actor: Actor = Depends(get_actor),
    session=Depends(get_session),
):
    return await review_service.vote(session, actor, review_id, body.is_helpful)
