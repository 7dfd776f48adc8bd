"""Connect card intake enums."""

from enum import Enum


class BatchStatus(str, Enum):
    """Intake batch lifecycle: PENDING -> COMPLETED."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class VisitorCardStatus(str, Enum):
    """Visitor card lifecycle: NEW -> REVIEWED | DUPLICATE."""

    NEW = "NEW"
    REVIEWED = "REVIEWED"
    DUPLICATE = "DUPLICATE"
