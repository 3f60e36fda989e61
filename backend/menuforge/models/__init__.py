from .auth import User, SessionToken, ROLE_ADMIN, ROLE_MENU_DEV, VALID_ROLES
from .menus import Menu, MenuUser, DebugLog, DeletionRequest, MenuStatus, DeletionStatus
from .tickets import Ticket, TicketMessage, TICKET_STATUSES
from .audit import AuditLog

__all__ = [
    'User', 'SessionToken', 'ROLE_ADMIN', 'ROLE_MENU_DEV', 'VALID_ROLES',
    'Menu', 'MenuUser', 'DebugLog', 'DeletionRequest', 'MenuStatus', 'DeletionStatus',
    'Ticket', 'TicketMessage', 'TICKET_STATUSES',
    'AuditLog',
]
