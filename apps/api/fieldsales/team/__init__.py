from fieldsales.team.schemas import TeamMember
from fieldsales.team.service import TeamService, team_service

__all__ = ["TeamMember", "TeamService", "team_service"]
