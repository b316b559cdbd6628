from fieldsales.territories.service import TerritoryService, territory_service

__all__ = ["TerritoryService", "territory_service"]
