from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import HTTPException, status
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from fieldsales.core.auth import AuthUser
from fieldsales.core.events import event_bus
from fieldsales.metrics import observe_ping_ingested
from fieldsales.team.service import TeamService, team_service
from fieldsales.tracking.models import LocationPing
from fieldsales.tracking.schemas import LocationPingCreate, LocationPingRead, TeamMemberPosition


logger = logging.getLogger("fieldsales.tracking")

MAX_LIST_LIMIT = 500


@dataclass(slots=True)
class LocationPingService:
    team: TeamService = field(default_factory=lambda: team_service)

    def record_ping(self, session: Session, user: AuthUser, dto: LocationPingCreate) -> LocationPingRead:
        if dto.user_id != user.sub:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="pings may only be recorded for yourself")

        ping = LocationPing(**dto.model_dump(mode="python"))
        session.add(ping)
        session.commit()
        session.refresh(ping)

        observe_ping_ingested(ping.activity_type)
        logger.info("tracking.ping_recorded", extra={"user_id": ping.user_id, "outcome": ping.activity_type})
        event_bus.publish(
            "tracking.ping_recorded",
            {"ping_id": str(ping.id), "user_id": ping.user_id, "is_moving": ping.is_moving},
        )
        return LocationPingRead.model_validate(ping)

    def list_pings(
        self,
        session: Session,
        user: AuthUser,
        *,
        user_id: str | None = None,
        limit: int = 100,
    ) -> list[LocationPingRead]:
        target_user_id = user_id or user.sub
        if not self.team.can_view_user(session, user.sub, is_admin=user.is_admin, target_user_id=target_user_id):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="not allowed to view this user's locations")

        rows = session.scalars(
            select(LocationPing)
            .where(LocationPing.user_id == target_user_id)
            .order_by(LocationPing.recorded_at.desc())
            .limit(min(max(limit, 1), MAX_LIST_LIMIT))
        ).all()
        return [LocationPingRead.model_validate(row) for row in rows]

    def latest_team_positions(self, session: Session, user: AuthUser) -> list[TeamMemberPosition]:
        members = self.team.get_team(session, user.sub)
        if not members:
            return []

        member_ids = [member.id for member in members]
        latest = (
            select(LocationPing.user_id, func.max(LocationPing.recorded_at).label("recorded_at"))
            .where(LocationPing.user_id.in_(member_ids))
            .group_by(LocationPing.user_id)
            .subquery()
        )
        rows = session.scalars(
            select(LocationPing).join(
                latest,
                and_(LocationPing.user_id == latest.c.user_id, LocationPing.recorded_at == latest.c.recorded_at),
            )
        ).all()
        by_user = {row.user_id: LocationPingRead.model_validate(row) for row in rows}

        return [
            TeamMemberPosition(user_id=member.id, full_name=member.full_name, ping=by_user.get(member.id))
            for member in members
        ]


location_ping_service = LocationPingService()
