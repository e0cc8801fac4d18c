from sqlmodel import select, Session
from sqlalchemy import update, delete
from sqlalchemy.exc import SQLAlchemyError
from typing import Iterable, List, Optional
from contextlib import contextmanager
import logging

from ..errors import StoreError
from ..models import Review

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(session: Session, operation: str):
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Store error during {operation}: {type(e).__name__}: {str(e)}")
        raise StoreError(f"{operation} failed") from e


def create_review(session: Session, name: str, text: str, rating: int) -> Review:
    review = Review(name=name, text=text, rating=rating, approved=False)
    with _store_errors(session, "create review"):
        session.add(review)
        session.commit()
        session.refresh(review)
    logger.info(f"Created pending review ID {review.id}")
    return review


def list_approved_reviews(session: Session) -> List[Review]:
    query = (
        select(Review)
        .where(Review.approved == True)  # noqa: E712
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    with _store_errors(session, "list reviews"):
        return list(session.exec(query).all())


def get_review(session: Session, review_id: int) -> Optional[Review]:
    with _store_errors(session, "get review"):
        return session.get(Review, review_id)


def seed_reviews(session: Session, records: Iterable[dict]) -> int:
    """Insert every record in one transaction; nothing is kept if any insert fails."""
    reviews = [
        Review(
            name=record.get("name"),
            text=record.get("text"),
            rating=record.get("rating"),
            approved=bool(record.get("approved") or False)
        )
        for record in records
    ]
    with _store_errors(session, "seed reviews"):
        for review in reviews:
            session.add(review)
            session.flush()
        session.commit()
    logger.info(f"Seeded {len(reviews)} reviews")
    return len(reviews)


def approve_pending_review(session: Session, review_id: int) -> bool:
    """Approve the review only while it is still pending. Returns whether a row changed."""
    statement = (
        update(Review)
        .where(Review.id == review_id, Review.approved == False)  # noqa: E712
        .values(approved=True)
    )
    with _store_errors(session, "approve review"):
        result = session.execute(statement)
        session.commit()
    return result.rowcount > 0


def delete_pending_review(session: Session, review_id: int) -> bool:
    """Delete the review only while it is still pending. Returns whether a row was removed."""
    statement = delete(Review).where(Review.id == review_id, Review.approved == False)  # noqa: E712
    with _store_errors(session, "reject review"):
        result = session.execute(statement)
        session.commit()
    return result.rowcount > 0
