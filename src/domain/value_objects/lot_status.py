from __future__ import annotations

from enum import Enum


class LotStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"
