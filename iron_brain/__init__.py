"""Iron Brain: training load, readiness and season planning for endurance athletes."""

__version__ = "0.1.0"
