"""Exception chain summary data model."""

from typing import Dict, Optional

from pydantic import BaseModel


class ChainSummary(BaseModel):
    """Classification and diagnostics extracted from an exception chain."""

    type: str
    message: str
    source: Optional[str] = None
    detail: str
    custom_data: Dict[str, str] = {}
    sql: Optional[str] = None
