from __future__ import annotations

from stay_intake.core.config import settings
from stay_intake.core.db import engine
from stay_intake.core.logging import get_logger, log_event
from stay_intake.core.models import Base
from stay_intake.modules.extraction.ai import extraction_ai_available

logger = get_logger(__name__)


def bootstrap() -> None:
    if settings.environment == "dev" and str(settings.database_url).startswith("sqlite"):
        import stay_intake.models  # noqa: F401

        Base.metadata.create_all(engine)

    log_event(
        logger,
        "app.bootstrap",
        environment=settings.environment,
        extraction_ai_available=extraction_ai_available(),
        gemini_model=settings.gemini_model,
    )
