from __future__ import annotations

import os
from decimal import Decimal

import pytest

# Set env before any stay_intake imports (settings/engine are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.stay_intake_test.db")
# Never reach the real model from tests; stubs patch the transport instead.
os.environ["GOOGLE_API_KEY"] = ""


@pytest.fixture(autouse=True)
def _reset_db() -> None:
    import stay_intake.models  # noqa: F401
    from stay_intake.core.db import engine
    from stay_intake.core.models import Base

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    yield


@pytest.fixture
def catalog():
    from stay_intake.modules.extraction.records import PropertyDefaults

    return [
        PropertyDefaults(
            id=1,
            name="Almada Noronha 2",
            cleaning_cost=Decimal("45"),
            check_in_fee=Decimal("15"),
            commission=Decimal("10"),
            team_payment=Decimal("30"),
        ),
        PropertyDefaults(id=2, name="Aroeira I", cleaning_cost=Decimal("60")),
        PropertyDefaults(id=3, name="Aroeira II", cleaning_cost=Decimal("60")),
        PropertyDefaults(id=4, name="Casa dos Barcos T3", cleaning_cost=Decimal("50")),
    ]
