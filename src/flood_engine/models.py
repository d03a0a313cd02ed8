"""Enumerations shared by the pipeline and the job runner."""

from enum import StrEnum


class JobStatus(StrEnum):
    """Background computation status values."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"
    FAILED = "failed"


class ReachabilityStrategy(StrEnum):
    """How connectivity to open water is decided."""

    EXACT = "exact"
    LINE_SAMPLE = "line_sample"


class PolygonMode(StrEnum):
    """How flooded cells are turned into polygons."""

    EXACT = "exact"
    HULL = "hull"
