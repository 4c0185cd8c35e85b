from __future__ import annotations

from enum import Enum


class FlowType(str, Enum):
    IN = "in"
    OUT = "out"
