"""
Services module for the NHL tracker data pipeline.

This module organizes services into:
- core: Generic upstream plumbing (pagination, bounded batch fetching, Odds API client)
- nhl: NHL-specific stages (stats adapter, team rankings, odds merge, snapshot build, pipeline)
- cache: Snapshot persistence (blob backends, front cache)
"""
