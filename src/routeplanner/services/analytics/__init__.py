"""Route efficiency analytics."""

from .efficiency import EfficiencyScore, calculate_efficiency_score, overall_score
from .route_analysis import RouteAnalysis, generate_route_analytics, prepare_export_data

__all__ = [
    "EfficiencyScore",
    "calculate_efficiency_score",
    "overall_score",
    "RouteAnalysis",
    "generate_route_analytics",
    "prepare_export_data",
]
