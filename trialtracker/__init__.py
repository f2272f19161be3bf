"""
TRIAL TRACKER
=============
Role-based clinical trial registry: authentication, ownership checks and the
trial validation pipeline.
"""

__version__ = "1.0.0"
