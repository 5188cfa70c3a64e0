"""
API client layer for the Via REST API

Authenticated HTTP client with bearer token caching.
"""
from .client import ViaClient, get_via_client, get_global_client, cleanup_global_client

__all__ = ['ViaClient', 'get_via_client', 'get_global_client', 'cleanup_global_client']
