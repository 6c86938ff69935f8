"""
Storm Impact package
====================

This package ranks NOAA storm event types by their harm to population health
and by their economic consequences.

- The CLI entry point is in `storm_impact/cli.py`.
- The pipeline (normalize -> damage -> aggregate) is in `storm_impact/engine.py`.
- Dataset download and loading is in `storm_impact/loader.py`.
"""

__version__ = '0.3.0'
