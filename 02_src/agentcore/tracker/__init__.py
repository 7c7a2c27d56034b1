"""Tracker module."""

from .tracker import ITracker, TaskTracker

__all__ = ["ITracker", "TaskTracker"]
