"""Strategy — интерфейсы внешних коллабораторов (strategy, custody, unit vault)."""

from .gateway import AssetCustody, StrategyGateway, UnitVault

__all__ = [
    "AssetCustody",
    "StrategyGateway",
    "UnitVault",
]
