"""
Gradebook Engine

Weighted grade aggregation (activity -> component -> term -> year),
performance classification and preventive-cut risk alerts.
"""
__version__ = "0.3.0"
