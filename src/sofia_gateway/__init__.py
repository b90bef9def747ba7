"""
SOF-IA Gateway - single entry point for the legal clinic dashboard API.

Routes every /api/* request to the backend service through a declarative
routing table and relays the response unchanged.
"""

__version__ = "1.0.0"
