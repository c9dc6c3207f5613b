"""
Audit Repository
Handles database operations for audit_logs table
"""
from typing import List, Dict, Any
from core.repositories.base_repository import BaseRepository

class AuditRepository(BaseRepository):
    """Repository for audit_logs table operations"""

    def __init__(self, db=None):
        super().__init__('audit_logs', 'audit_id', db=db)

    def log_action(self, actor_id: int, role: str, action: str, details: str = None) -> int:
        """Insert one row; returns audit_id"""
        return self.create({
            'actor_id': actor_id,
            'role': role,
            'action': action,
            'details': details
        })

    def get_recent_logs(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent entries for the admin dashboard"""
        return self._query_all(
            f"SELECT * FROM {self.table_name} ORDER BY created_at DESC, audit_id DESC LIMIT %s",
            (limit,)
        )
