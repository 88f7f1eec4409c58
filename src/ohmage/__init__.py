"""
ohmage: mobile-sensing data collection server.
"""

__version__ = "0.1.0"
