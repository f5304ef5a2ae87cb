"""Database clients and utilities."""

from .store import DocumentStore, StoreNotConfiguredError, SupabaseDocumentStore
from .supabase import get_supabase_client

__all__ = ["DocumentStore", "StoreNotConfiguredError", "SupabaseDocumentStore", "get_supabase_client"]
