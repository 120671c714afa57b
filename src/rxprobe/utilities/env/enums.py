from enum import StrEnum


class FailureMode(StrEnum):
    DEFERRED = "deferred"
    IMMEDIATE = "immediate"
