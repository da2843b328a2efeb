"""
Shared value types, configuration, logging and small helpers.
"""
