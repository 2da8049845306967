from .types import ColorRule, MapInfo, Marker, MarkerSize, RuleOperator

__all__ = ["ColorRule", "MapInfo", "Marker", "MarkerSize", "RuleOperator"]
