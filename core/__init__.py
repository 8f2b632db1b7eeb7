# Core package for ticket management, the media cache and audit delivery

from .audit_emitter import AuditEmitter, AuditRecord, AuditColor, DeliveryStatus
from .media_cache import MediaCache, SweepResult
from .ticket_manager import TicketManager, CloseOutcome, RoleOutcome
from .ticket_registry import TicketRegistry

__all__ = [
    'AuditEmitter',
    'AuditRecord',
    'AuditColor',
    'DeliveryStatus',
    'MediaCache',
    'SweepResult',
    'TicketManager',
    'CloseOutcome',
    'RoleOutcome',
    'TicketRegistry'
]
