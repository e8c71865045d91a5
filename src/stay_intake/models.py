"""
Alembic model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

# Reservations reference properties.
from stay_intake.modules.properties.models import Property  # noqa: F401

from stay_intake.modules.extraction.models import ExtractionAICache  # noqa: F401
from stay_intake.modules.reservations.models import Reservation  # noqa: F401
