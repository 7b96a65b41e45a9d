import logging
from typing import Any

logger = logging.getLogger("storefront.audit")

def log_user_action(user_id: Any, action: str, entity: str, entity_id: Any = None):
    """Log user actions for audit trail"""
    logger.info(f"User {user_id} performed {action} on {entity} {entity_id or ''}".rstrip())
