from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from fieldsales.core.auth import AuthUser
from fieldsales.team.models import Profile
from fieldsales.territories.models import Area, Division, Region, Territory
from fieldsales.territories.schemas import (
    AreaNode,
    DivisionNode,
    HierarchyRead,
    RegionNode,
    TerritoryDetail,
    TerritoryRead,
    TerritorySummary,
)


logger = logging.getLogger("fieldsales.territories")


@dataclass(slots=True)
class TerritoryService:
    def assigned_territory_ids(self, session: Session, user_id: str) -> list[str]:
        profile = session.get(Profile, user_id)
        if profile is None or not profile.territory_ids:
            return []
        return [str(value) for value in profile.territory_ids]

    def visible_territories(self, session: Session, user: AuthUser) -> list[TerritoryRead]:
        """Active territories the caller may see, ordered by name.

        ``country_head`` sees every territory. Anyone else sees the ones listed in
        their profile's ``territory_ids`` plus the ones they supervise.
        """
        stmt = select(Territory).where(Territory.is_active.is_(True))
        if not user.is_admin:
            conditions = [Territory.supervisor_id == user.sub]
            assigned = self.assigned_territory_ids(session, user.sub)
            if assigned:
                conditions.append(Territory.id.in_(assigned))
            stmt = stmt.where(or_(*conditions))
        rows = session.scalars(stmt.order_by(Territory.name.asc())).all()
        return [TerritoryRead.model_validate(row) for row in rows]

    def can_view_territory(self, session: Session, user: AuthUser, territory: Territory) -> bool:
        if user.is_admin or territory.supervisor_id == user.sub:
            return True
        return territory.id in self.assigned_territory_ids(session, user.sub)

    def get_territory(self, session: Session, user: AuthUser, territory_id: str) -> TerritoryDetail:
        territory = session.get(Territory, territory_id)
        if territory is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="territory not found")
        if not self.can_view_territory(session, user, territory):
            logger.warning("territory.access_denied", extra={"user_id": user.sub, "territory_id": territory_id})
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="not allowed to view this territory")

        detail = TerritoryDetail.model_validate(territory)
        detail.active_reps = self.count_active_reps(session, territory.id)
        return detail

    def count_active_reps(self, session: Session, territory_id: str) -> int:
        # territory_ids is a JSON list, so membership is checked in Python to stay portable
        assignments = session.scalars(
            select(Profile.territory_ids).where(Profile.is_active.is_(True), Profile.territory_ids.is_not(None))
        ).all()
        return sum(1 for ids in assignments if ids and territory_id in ids)

    def hierarchy(self, session: Session) -> HierarchyRead:
        divisions = session.scalars(select(Division).order_by(Division.name.asc())).all()
        regions = session.scalars(select(Region).order_by(Region.name.asc())).all()
        areas = session.scalars(select(Area).order_by(Area.name.asc())).all()
        territories = session.scalars(
            select(Territory)
            .where(Territory.is_active.is_(True), Territory.area_id.is_not(None))
            .order_by(Territory.name.asc())
        ).all()

        territories_by_area: dict[str, list[TerritorySummary]] = defaultdict(list)
        for territory in territories:
            territories_by_area[territory.area_id].append(TerritorySummary.model_validate(territory))

        areas_by_region: dict[str, list[AreaNode]] = defaultdict(list)
        for area in areas:
            areas_by_region[area.region_id].append(
                AreaNode(id=area.id, name=area.name, territories=territories_by_area.get(area.id, []))
            )

        regions_by_division: dict[str | None, list[RegionNode]] = defaultdict(list)
        division_ids = {division.id for division in divisions}
        for region in regions:
            node = RegionNode(id=region.id, name=region.name, areas=areas_by_region.get(region.id, []))
            parent = region.division_id if region.division_id in division_ids else None
            regions_by_division[parent].append(node)

        return HierarchyRead(
            divisions=[
                DivisionNode(id=division.id, name=division.name, regions=regions_by_division.get(division.id, []))
                for division in divisions
            ],
            unassigned_regions=regions_by_division.get(None, []),
        )


territory_service = TerritoryService()
