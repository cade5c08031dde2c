"""
Timeslot availability and booking conflict engine.
"""

__version__ = "1.1.0"
