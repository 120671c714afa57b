"""Recording probes and fluent assertions for ``reactivex`` streams."""

from rxprobe.probe import StreamProbe as StreamProbe
from rxprobe.probe import observe as observe
from rxprobe.probe import to_probe as to_probe
from rxprobe.reporting import AssertionFailure as AssertionFailure
from rxprobe.reporting import CollectingReporter as CollectingReporter
from rxprobe.reporting import FailureReporter as FailureReporter
from rxprobe.reporting import RaisingReporter as RaisingReporter
from rxprobe.reporting import SourceLocation as SourceLocation
