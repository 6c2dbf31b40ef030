"""
Routing service integration for travel duration matrices
"""

from .client import MatrixClient
from .models import MatrixResponse
from .service import DurationService

__all__ = ["MatrixClient", "MatrixResponse", "DurationService"]
