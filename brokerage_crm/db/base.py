from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base shared by every brokerage table.

    Datetime columns (quote follow-ups, closing dates, history entries) are
    stored timezone-aware; plain dates such as policy start/end use Date.
    """

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }
