from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from fieldsales.team.models import Profile
from fieldsales.team.schemas import TeamMember


logger = logging.getLogger("fieldsales.team")


@dataclass(slots=True)
class TeamService:
    def subordinate_ids(self, session: Session, manager_id: str) -> list[str]:
        """All profile ids below ``manager_id`` in the ``reports_to`` tree, excluding the manager."""
        hierarchy = select(Profile.id).where(Profile.reports_to == manager_id).cte("subordinates", recursive=True)
        child = aliased(Profile)
        hierarchy = hierarchy.union(select(child.id).where(child.reports_to == hierarchy.c.id))
        ids = session.scalars(select(hierarchy.c.id)).all()
        return [value for value in ids if value and value != manager_id]

    def get_team(self, session: Session, manager_id: str) -> list[TeamMember]:
        try:
            member_ids = self.subordinate_ids(session, manager_id)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("team.hierarchy_failed", extra={"user_id": manager_id, "error": str(exc)[:500]})
            return self._direct_reports(session, manager_id)

        if not member_ids:
            return []

        rows = session.scalars(
            select(Profile)
            .where(Profile.id.in_(member_ids), Profile.is_active.is_(True))
            .order_by(Profile.full_name.asc())
        ).all()
        return [TeamMember.model_validate(row) for row in rows]

    def can_view_user(self, session: Session, viewer_id: str, *, is_admin: bool, target_user_id: str) -> bool:
        if is_admin or viewer_id == target_user_id:
            return True
        return target_user_id in {member.id for member in self.get_team(session, viewer_id)}

    def _direct_reports(self, session: Session, manager_id: str) -> list[TeamMember]:
        rows = session.scalars(
            select(Profile)
            .where(Profile.reports_to == manager_id, Profile.is_active.is_(True))
            .order_by(Profile.full_name.asc())
        ).all()
        return [TeamMember.model_validate(row) for row in rows]


team_service = TeamService()
