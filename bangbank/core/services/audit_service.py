"""
Audit Service
Records administrative and security-relevant actions
"""
import json
from typing import Any
from core.repositories.audit_repository import AuditRepository

class AuditService:
    """Append-only trail of approvals, role changes and deletions"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(AuditService, cls).__new__(cls)
            cls._instance.repo = AuditRepository()
        return cls._instance

    def log(self, actor_id: int, role: Any, action: str, details: Any = None):
        """Write one audit row; details are stored as JSON text"""
        role_value = getattr(role, 'value', role)
        details_str = json.dumps(details, default=str) if details else None
        return self.repo.log_action(actor_id, role_value, action, details_str)

    def get_latest_activity(self, count: int = 15):
        """Newest rows first"""
        return self.repo.get_recent_logs(count)
