"""Environment configuration helpers."""

from rxprobe.utilities.env.config import Configuration as Configuration
from rxprobe.utilities.env.enums import FailureMode as FailureMode
