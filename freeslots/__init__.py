"""
freeslots - find open meeting intervals in a Google Calendar and book them.
"""

__version__ = "0.1.0"
