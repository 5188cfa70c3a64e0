"""
Shared utilities for the Via API client
"""
