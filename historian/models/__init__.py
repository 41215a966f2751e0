from .meta import HealthResponse, MetaResponse
from .status import OverviewResponse, RollingSummaryResponse, StatusResponse

__all__ = [
    "HealthResponse",
    "MetaResponse",
    "OverviewResponse",
    "RollingSummaryResponse",
    "StatusResponse",
]
