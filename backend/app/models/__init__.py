"""Database models."""

from backend.app.models.gia import GiaGrant
from backend.app.models.idig import IdigGrant
from backend.app.models.lakas import LakasGrant
from backend.app.models.nafes import NafesGrant

__all__ = [
    "GiaGrant",
    "IdigGrant",
    "LakasGrant",
    "NafesGrant",
]
