import os


def _env_optional_float(
    env_var: str,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float | None:
    """Return the float value of ``env_var`` or ``None`` when unset or blank."""

    value = os.environ.get(env_var)
    if value is None or not value.strip():
        return None
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ValueError(f"{env_var} must be a float") from exc
    if minimum is not None and parsed < minimum:
        raise ValueError(f"{env_var} must be at least {minimum}")
    if maximum is not None and parsed > maximum:
        raise ValueError(f"{env_var} must be at most {maximum}")
    return parsed
