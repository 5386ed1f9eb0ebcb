"""
Audit logging utilities.

Every change to deals, people and carriers is logged so that commission
disputes can be traced back to who changed what.
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.audit import AuditAction, AuditLog


async def log_action(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action_metadata: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Log an auditable action.

    Args:
        db: Database session
        user_id: ID of the person performing the action
        action: Type of action being performed
        target_type: Type of entity affected ("deal", "person", "carrier")
        target_id: ID of the affected entity
        action_metadata: Additional context about the action
        ip_address: Client IP address

    Returns:
        Created AuditLog entry
    """
    log_entry = AuditLog(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=action_metadata,
        ip_address=ip_address,
    )
    db.add(log_entry)
    # Note: commit should happen in the calling context
    return log_entry


def commission_snapshot(deal) -> dict[str, Any]:
    """JSON-safe summary of a deal's commission figures for audit metadata."""
    return {
        "version": deal.version,
        "annual_premium": str(deal.annual_premium),
        "carrier_name": deal.carrier_name,
        "insurance_kind": deal.insurance_kind.value,
        "base_commission": str(deal.base_commission),
        "seller_commission": str(deal.seller_commission),
        "manager_override": str(deal.manager_override),
        "owner_override": str(deal.owner_override),
        "deposit_date": deal.deposit_date.isoformat() if deal.deposit_date else None,
    }


def get_client_ip(request) -> Optional[str]:
    """
    Extract client IP from request.

    Handles X-Forwarded-For header for reverse proxy setups.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the list is the client
        return forwarded_for.split(",")[0].strip()

    if hasattr(request, "client") and request.client:
        return request.client.host

    return None
