"""ManyPost - schedule and publish videos to YouTube."""

__version__ = "0.1.0"
