"""Engine data model"""

from star_history.models.series import Cursor, OwnerSeries, RepoSeries, Series, WorkItem
from star_history.models.star import SENTINEL_LOGIN, SeriesPoint, Star, StarSet

__all__ = [
    "Cursor",
    "OwnerSeries",
    "RepoSeries",
    "Series",
    "WorkItem",
    "SENTINEL_LOGIN",
    "SeriesPoint",
    "Star",
    "StarSet",
]
