from visit_analysis.storage.base import HIGH_PRIORITY_THRESHOLD, AuditLogStore, VisitStore
from visit_analysis.storage.memory import InMemoryAuditLog, InMemoryVisitStore
from visit_analysis.storage.supabase import (
    SupabaseAuditLog,
    SupabaseVisitStore,
    build_rest_client,
)

__all__ = [
    "VisitStore", "AuditLogStore", "HIGH_PRIORITY_THRESHOLD",
    "InMemoryVisitStore", "InMemoryAuditLog",
    "SupabaseVisitStore", "SupabaseAuditLog", "build_rest_client",
]
