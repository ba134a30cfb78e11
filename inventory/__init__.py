"""
Inventory application services built on the pharmascan core:
persistence, settings, the scan workflow and summaries.
"""
