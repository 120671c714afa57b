import os

from rxprobe.utilities.env.enums import FailureMode
from rxprobe.utilities.env.parsing import _env_optional_float


class ProbeConfiguration:
    @classmethod
    def await_timeout_s(cls) -> float | None:
        return _env_optional_float("RXPROBE_AWAIT_TIMEOUT_S", minimum=0.0)

    @classmethod
    def failure_mode(cls) -> FailureMode:
        mode = os.environ.get("RXPROBE_FAILURE_MODE", "deferred").strip().lower()
        try:
            return FailureMode(mode)
        except ValueError as exc:
            raise ValueError(
                "RXPROBE_FAILURE_MODE must be 'deferred' or 'immediate'"
            ) from exc
