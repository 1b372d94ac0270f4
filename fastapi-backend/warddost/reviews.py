"""Reviews on complaint resolutions and helpful / not-helpful votes."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import select

from .auth import Actor
from .database import engine
from .errors import NotFound, ValidationFailed
from .models import Complaint, Review, ReviewVote, _new_id, utcnow
from .observability import review_votes_total, reviews_created_total

logger = logging.getLogger("warddost.reviews")

_UPSERT_DIALECTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


@dataclass
class ReviewSummary:
    review: Review
    helpful_votes: int = 0
    unhelpful_votes: int = 0

    @property
    def helpfulness_score(self) -> int:
        return self.helpful_votes - self.unhelpful_votes


async def add_review(session, actor: Actor, complaint_id: str, content: str, rating: int = 5) -> Review:
    if not await session.get(Complaint, complaint_id):
        raise NotFound("Complaint not found")
    content = (content or "").strip()
    if not content:
        raise ValidationFailed("Review text cannot be empty", field="content")

    review = Review(complaint_id=complaint_id, user_id=actor.user_id, content=content, rating=rating)
    session.add(review)
    await session.commit()
    await session.refresh(review)

    reviews_created_total.inc()
    logger.info("Review %s posted on complaint %s by %s", review.id, complaint_id, actor.user_id)
    return review


async def vote(session, actor: Actor, review_id: str, is_helpful: bool) -> ReviewVote:
    """Record the caller's vote, replacing any earlier vote on the same review."""
    if not await session.get(Review, review_id):
        raise NotFound("Review not found")

    insert = _UPSERT_DIALECTS.get(engine.dialect.name)
    if insert is None:
        raise RuntimeError(f"Vote upsert is not supported on {engine.dialect.name}")

    now = utcnow()
    statement = insert(ReviewVote).values(
        id=_new_id(),
        review_id=review_id,
        user_id=actor.user_id,
        is_helpful=is_helpful,
        created_at=now,
    )
    statement = statement.on_conflict_do_update(
        index_elements=["review_id", "user_id"],
        set_={"is_helpful": statement.excluded.is_helpful, "updated_at": now},
    )
    await session.exec(statement)
    await session.commit()

    review_votes_total.labels(is_helpful=str(is_helpful).lower()).inc()

    result = await session.exec(
        select(ReviewVote).where(ReviewVote.review_id == review_id, ReviewVote.user_id == actor.user_id)
    )
    saved = result.one()
    # The upsert bypassed the identity map; make sure we return the stored row.
    await session.refresh(saved)
    return saved


async def list_reviews(session, complaint_id: str) -> List[ReviewSummary]:
    """Newest-first reviews with vote tallies computed from the current votes."""
    if not await session.get(Complaint, complaint_id):
        raise NotFound("Complaint not found")

    result = await session.exec(
        select(Review)
        .where(Review.complaint_id == complaint_id)
        .order_by(Review.created_at.desc(), Review.id)
    )
    reviews = list(result.all())
    if not reviews:
        return []

    votes_result = await session.exec(
        select(ReviewVote.review_id, ReviewVote.is_helpful).where(
            ReviewVote.review_id.in_([review.id for review in reviews])
        )
    )
    tallies: Dict[str, List[bool]] = defaultdict(list)
    for review_id, is_helpful in votes_result.all():
        tallies[review_id].append(bool(is_helpful))

    return [summarize(review, tallies.get(review.id)) for review in reviews]


def summarize(review: Review, votes: Optional[Iterable[bool]] = None) -> ReviewSummary:
    votes = list(votes or [])
    helpful = sum(1 for v in votes if v)
    return ReviewSummary(review=review, helpful_votes=helpful, unhelpful_votes=len(votes) - helpful)
