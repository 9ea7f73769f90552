"""
Escalation Controllers (API Routes)
====================================

FastAPI routes for the ticket tracker.

Controllers are thin - they delegate to TicketTrackerService.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from warning_tracker.config import Region, TicketStatus
from warning_tracker.core import ApplicationException, ResourceNotFoundException, ValidationException
from warning_tracker.escalation.application import (
    TicketTrackerService,
    TicketRecord, NotificationRecord,
    TicketCreateDTO, TicketStatusUpdateDTO, TicketUpdateDTO,
    TicketUpdateResponse, NotificationListResponse, EscalationRunResponse
)
from warning_tracker.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/tracker", tags=["Ticket Tracker"])


# ========== Dependencies ==========

def get_tracker_service(request: Request) -> TicketTrackerService:
    """Get the tracker service created at startup."""
    service = getattr(request.app.state, "tracker_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tracker service not initialised"
        )
    return service


def _http_error(exc: ApplicationException) -> HTTPException:
    logger.info(
        "Request rejected",
        extra={"error_type": type(exc).__name__, "error_message": exc.message}
    )
    return HTTPException(status_code=exc.http_status, detail=exc.message)


# ========== Tickets ==========

@router.get(
    "/tickets/{region}",
    response_model=List[TicketRecord],
    summary="List a region's tickets",
    description="Tickets in status display order, optionally filtered by status."
)
async def list_tickets(
    region: Region,
    ticket_status: Optional[TicketStatus] = Query(None, alias="status", description="Filter by status"),
    service: TicketTrackerService = Depends(get_tracker_service)
):
    return [TicketRecord.from_domain(t) for t in service.list_tickets(region, ticket_status)]


@router.post(
    "/tickets/{region}",
    response_model=TicketRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create a ticket"
)
async def create_ticket(
    region: Region,
    request: TicketCreateDTO,
    service: TicketTrackerService = Depends(get_tracker_service)
):
    try:
        ticket = service.add_ticket(region, request.model_dump())
    except ValidationException as e:
        raise _http_error(e)
    return TicketRecord.from_domain(ticket)


@router.delete(
    "/tickets/{region}/{ticket_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a ticket"
)
async def delete_ticket(
    region: Region,
    ticket_id: str,
    service: TicketTrackerService = Depends(get_tracker_service)
):
    try:
        service.delete_ticket(region, ticket_id)
    except ResourceNotFoundException as e:
        raise _http_error(e)


@router.put(
    "/tickets/{region}/{ticket_id}/status",
    response_model=TicketRecord,
    summary="Change a ticket's status",
    description="""
    Manual status change. Resets the activity clock; setting `Warning 1 Sent`
    or `Warning 2 Sent` also records when the warning went out.
    """
)
async def update_ticket_status(
    region: Region,
    ticket_id: str,
    request: TicketStatusUpdateDTO,
    service: TicketTrackerService = Depends(get_tracker_service)
):
    try:
        ticket = service.update_status(region, ticket_id, request.status)
    except ResourceNotFoundException as e:
        raise _http_error(e)
    return TicketRecord.from_domain(ticket)


@router.patch(
    "/tickets/{region}/{ticket_id}",
    response_model=TicketUpdateResponse,
    summary="Edit a ticket",
    description="""
    Partial update. Editing `lastModified` re-anchors escalation tracking and
    re-evaluates the ticket immediately; any resulting notifications are
    returned with the ticket.
    """
)
async def update_ticket(
    region: Region,
    ticket_id: str,
    request: TicketUpdateDTO,
    service: TicketTrackerService = Depends(get_tracker_service)
):
    try:
        ticket, notifications = await service.update_ticket(
            region, ticket_id, request.model_dump(exclude_unset=True)
        )
    except (ResourceNotFoundException, ValidationException) as e:
        raise _http_error(e)

    return TicketUpdateResponse(
        ticket=TicketRecord.from_domain(ticket),
        new_notifications=[NotificationRecord.from_domain(n) for n in notifications]
    )


@router.get(
    "/search",
    response_model=List[TicketRecord],
    summary="Search tickets",
    description="Case-insensitive match on ticket number, title or label across both regions."
)
async def search_tickets(
    q: str = Query("", description="Search text"),
    service: TicketTrackerService = Depends(get_tracker_service)
):
    return [TicketRecord.from_domain(t) for t in service.search(q)]


# ========== Notifications ==========

@router.get(
    "/notifications",
    response_model=NotificationListResponse,
    summary="List notifications"
)
async def list_notifications(
    service: TicketTrackerService = Depends(get_tracker_service)
):
    notifications = service.list_notifications()
    return NotificationListResponse(
        notifications=[NotificationRecord.from_domain(n) for n in notifications],
        total=len(notifications),
        unread_count=sum(1 for n in notifications if not n.read)
    )


@router.post(
    "/notifications/read",
    summary="Mark all notifications read"
)
async def mark_notifications_read(
    service: TicketTrackerService = Depends(get_tracker_service)
):
    return {"marked_read": service.mark_all_read()}


@router.delete(
    "/notifications/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Dismiss a notification"
)
async def dismiss_notification(
    notification_id: str,
    service: TicketTrackerService = Depends(get_tracker_service)
):
    try:
        service.dismiss_notification(notification_id)
    except ResourceNotFoundException as e:
        raise _http_error(e)


@router.delete(
    "/notifications",
    summary="Clear all notifications"
)
async def clear_notifications(
    service: TicketTrackerService = Depends(get_tracker_service)
):
    return {"cleared": service.clear_notifications()}


# ========== Escalation ==========

@router.post(
    "/escalation/run",
    response_model=EscalationRunResponse,
    summary="Run an escalation check now"
)
async def run_escalation(
    service: TicketTrackerService = Depends(get_tracker_service)
):
    result = await service.run_escalation_check(trigger="manual")
    return EscalationRunResponse(
        now=result.now,
        tickets_evaluated=result.tickets_evaluated,
        tickets_changed=result.tickets_changed,
        new_notifications=[NotificationRecord.from_domain(n) for n in result.new_notifications]
    )


# Export router for inclusion in main app
tracker_router = router
