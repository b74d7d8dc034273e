"""
Run telemetry recording and matplotlib plotting.
"""

from .plotter import RunRecorder, TrackingStatistics, plot_run, sample_path

__all__ = [
    "RunRecorder",
    "TrackingStatistics",
    "plot_run",
    "sample_path",
]
