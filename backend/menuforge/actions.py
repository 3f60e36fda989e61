# Overview: Closed catalogue of internal and partner action names.

from enum import Enum


class Action(str, Enum):
    """Every action accepted by POST /api/action."""

    # Menus
    GET_MENUS = "get_menus"
    CREATE_MENU = "create_menu"
    GET_MENU = "get_menu"
    UPDATE_CODE = "update_code"
    PUSH_TO_DEV = "push_to_dev"
    PUSH_TO_BUILD = "push_to_build"
    UPLOAD_MENU = "upload_menu"

    # Menu end users
    GET_MENU_USERS = "get_menu_users"
    BLACKLIST_USER = "blacklist_user"
    UNBLACKLIST_USER = "unblacklist_user"

    # Status & management
    GET_MENU_STATS = "get_menu_stats"
    UPDATE_MENU_STATUS = "update_menu_status"
    REQUEST_DELETION = "request_deletion"
    GET_API_INFO = "get_api_info"
    GET_DEBUG_LOGS = "get_debug_logs"

    # Tickets
    CREATE_TICKET = "create_ticket"
    GET_TICKETS = "get_tickets"
    GET_TICKET_MESSAGES = "get_ticket_messages"
    SEND_TICKET_MESSAGE = "send_ticket_message"
    UPDATE_TICKET_STATUS = "update_ticket_status"

    # Admin
    ADMIN_GET_ALL_MENUS = "admin_get_all_menus"
    ADMIN_APPROVE_MENU = "admin_approve_menu"
    ADMIN_REJECT_MENU = "admin_reject_menu"
    ADMIN_TERMINATE_MENU = "admin_terminate_menu"
    ADMIN_GET_ALL_USERS = "admin_get_all_users"
    ADMIN_CREATE_USER = "admin_create_user"
    ADMIN_TOGGLE_USER = "admin_toggle_user"
    ADMIN_GET_AUDIT_LOGS = "admin_get_audit_logs"
    ADMIN_GET_DELETION_REQUESTS = "admin_get_deletion_requests"
    ADMIN_HANDLE_DELETION = "admin_handle_deletion"
    ADMIN_VIEW_CODE = "admin_view_code"
    ADMIN_EDIT_CODE = "admin_edit_code"
    ADMIN_MANAGE_MENU_USERS = "admin_manage_menu_users"


class ExternalAction(str, Enum):
    """Every action accepted by POST /api/external."""

    GET_CODE = "get_code"
    CREATE_USER = "create_user"
    BLACKLIST_USER = "blacklist_user"
    UNBLACKLIST_USER = "unblacklist_user"
    CHECK_BLACKLIST = "check_blacklist"
    CHECK_USER = "check_user"
    DEBUG_LOG = "debug_log"
