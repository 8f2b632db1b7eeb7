# Models package for ticket and media cache records

from .ticket import Ticket, TicketStatus, CloseDisposition, Identity
from .media import CachedMediaEntry

__all__ = [
    'Ticket',
    'TicketStatus',
    'CloseDisposition',
    'Identity',
    'CachedMediaEntry'
]
