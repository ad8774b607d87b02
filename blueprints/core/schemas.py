from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, Field

def _naive_utc(value: datetime) -> datetime:
    # в БД храним naive UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

UtcDateTime = Annotated[datetime, AfterValidator(_naive_utc)]
PositiveId = Annotated[int, Field(gt=0)]
