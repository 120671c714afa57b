from rxprobe.utilities.env.logging import LoggingConfiguration
from rxprobe.utilities.env.probe import ProbeConfiguration


class Configuration(
    ProbeConfiguration,
    LoggingConfiguration,
):
    """Aggregate environment configuration helpers."""
