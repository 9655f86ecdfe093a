"""
Contribution and moderation workflow.

Public submissions are written immediately and mirrored into a
``Contribution`` review ticket in the same transaction. The ticket is an
audit record: its status never hides, reverses or re-applies the write.
Remembrance visibility is governed only by ``Remembrance.approved`` (set by
an admin) together with the submitter's ``is_public`` flag.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import NotFoundError
from .models import (
    Contribution,
    ContributionStatus,
    ContributionType,
    Memorial,
    OfferingType,
    Person,
    Remembrance,
    VirtualOffering,
)

logger = logging.getLogger(__name__)

ADMIN_QUEUE_LIMIT = 50


def get_or_create_memorial(session: Session, person_id: int) -> Memorial:
    """Return the person's memorial, creating it on first use.

    The insert runs under a SAVEPOINT; if a concurrent request created the
    row first, the unique constraint on ``person_id`` fires and the existing
    row is read back instead.
    """
    existing = session.execute(select(Memorial).where(Memorial.person_id == person_id)).scalar_one_or_none()
    if existing is not None:
        return existing
    if session.get(Person, person_id) is None:
        raise NotFoundError("Person not found")

    try:
        with session.begin_nested():
            memorial = Memorial(person_id=person_id)
            session.add(memorial)
    except IntegrityError:
        memorial = session.execute(select(Memorial).where(Memorial.person_id == person_id)).scalar_one()
    return memorial


def record_contribution(
    session: Session,
    kind: ContributionType,
    person_id: Optional[int],
    payload: Dict[str, Any],
    user_id: Optional[int] = None,
) -> Contribution:
    """Add a PENDING contribution to the session; the caller commits."""
    contribution = Contribution(
        user_id=user_id,
        person_id=person_id,
        type=kind,
        data=payload,
        status=ContributionStatus.PENDING,
    )
    session.add(contribution)
    return contribution


class SubmissionService:
    """Public memorial submissions (remembrances and offerings)."""

    def __init__(self, session: Session):
        self.session = session

    def submit_remembrance(
        self,
        person_id: int,
        message: str,
        author_name: Optional[str],
        is_public: bool,
        user_id: Optional[int] = None,
    ) -> Remembrance:
        memorial = get_or_create_memorial(self.session, person_id)
        remembrance = Remembrance(
            memorial_id=memorial.id,
            message=message,
            author_name=author_name,
            is_public=is_public,
            approved=False,
        )
        self.session.add(remembrance)
        record_contribution(
            self.session,
            ContributionType.REMEMBRANCE,
            person_id,
            {
                "memorialId": memorial.id,
                "message": message,
                "authorName": author_name,
                "isPublic": is_public,
            },
            user_id=user_id,
        )
        self.session.commit()
        logger.info("Remembrance %s submitted for person %s", remembrance.id, person_id)
        return remembrance

    def submit_offering(
        self,
        person_id: int,
        offering_type: OfferingType,
        message: Optional[str],
        author_name: Optional[str],
        user_id: Optional[int] = None,
    ) -> VirtualOffering:
        memorial = get_or_create_memorial(self.session, person_id)
        offering = VirtualOffering(
            memorial_id=memorial.id,
            offering_type=offering_type,
            message=message,
            author_name=author_name,
        )
        self.session.add(offering)
        record_contribution(
            self.session,
            ContributionType.OFFERING,
            person_id,
            {
                "memorialId": memorial.id,
                "offeringType": offering_type.value,
                "message": message,
                "authorName": author_name,
            },
            user_id=user_id,
        )
        self.session.commit()
        logger.info("Offering %s (%s) submitted for person %s", offering.id, offering_type.value, person_id)
        return offering


class ModerationService:
    """Admin review queue."""

    def __init__(self, session: Session):
        self.session = session

    def pending(self) -> Dict[str, list]:
        contributions = self.session.execute(
            select(Contribution)
            .where(Contribution.status == ContributionStatus.PENDING)
            .order_by(Contribution.submitted_at.desc(), Contribution.id.desc())
            .limit(ADMIN_QUEUE_LIMIT)
        ).scalars().all()
        remembrances = self.session.execute(
            select(Remembrance)
            .where(Remembrance.approved.is_(False))
            .order_by(Remembrance.created_at.desc(), Remembrance.id.desc())
            .limit(ADMIN_QUEUE_LIMIT)
        ).scalars().all()
        return {"contributions": list(contributions), "remembrances": list(remembrances)}

    def approve_remembrance(self, remembrance_id: int, reviewer: str) -> Remembrance:
        remembrance = self.session.get(Remembrance, remembrance_id)
        if remembrance is None:
            raise NotFoundError("Remembrance not found")
        remembrance.approved = True
        self.session.commit()
        logger.info("Remembrance %s approved by %s", remembrance_id, reviewer)
        return remembrance

    def set_contribution_status(self, contribution_id: int, status: ContributionStatus, reviewer: str) -> Contribution:
        contribution = self.session.get(Contribution, contribution_id)
        if contribution is None:
            raise NotFoundError("Contribution not found")
        contribution.status = status
        contribution.reviewed_at = datetime.utcnow()
        contribution.reviewed_by = reviewer
        self.session.commit()
        logger.info("Contribution %s marked %s by %s", contribution_id, status.value, reviewer)
        return contribution
