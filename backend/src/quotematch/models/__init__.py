"""SQLAlchemy Models for quotematch"""

from .base import Base
from .catalog_entry import CatalogEntry, CatalogAlias
from .training_record import TrainingRecord, TrainingLabel, TrainingQuality
from .match_decision import MatchDecision

__all__ = [
    "Base",
    "CatalogEntry",
    "CatalogAlias",
    "TrainingRecord",
    "TrainingLabel",
    "TrainingQuality",
    "MatchDecision",
]
