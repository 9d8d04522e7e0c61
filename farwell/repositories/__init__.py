"""
Persistence adapters.

Services depend on these repositories instead of opening SQL sessions
themselves.
"""
