"""
Admin API routes - requires an admin profile
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from volunteer_portal.core.config import settings
from volunteer_portal.core.db import get_db
from volunteer_portal.models import Profile
from volunteer_portal.schemas.chat import ChatLogEntry
from volunteer_portal.schemas.event import EventCreate, EventResponse
from volunteer_portal.schemas.shipment import ShipmentCreate, ShipmentResponse, ShipmentUpdate
from volunteer_portal.schemas.signup import SignupResponse
from volunteer_portal.services.errors import ServiceError
from volunteer_portal.services.event_service import EventService
from volunteer_portal.services.excel_service import ExcelService, XLSX_MEDIA_TYPE
from volunteer_portal.services.repositories import ChatLogRepo, EventRepo
from volunteer_portal.services.ship24_client import Ship24Client
from volunteer_portal.services.shipping_service import ShippingService
from volunteer_portal.services.signup_service import SignupService
from volunteer_portal.utils.responses import (
    error_response,
    not_found_error,
    paginated_response,
    service_error_response,
    success_response,
)
from volunteer_portal.utils.security import require_admin

router = APIRouter()

def get_ship24_client() -> Ship24Client:
    return Ship24Client()

def _signup_row(signup) -> dict:
    row = SignupResponse.model_validate(signup).model_dump()
    row["display_name"] = signup.user.display_name if signup.user else None
    return row

# -------- Events --------

@router.post("/events")
async def create_event(
    event_data: EventCreate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    """Create a new event"""
    try:
        event = EventService.create_event(db, event_data)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(
        message="Event created successfully",
        data=EventResponse.model_validate(event),
        status_code=201
    )

@router.put("/events/{event_id}")
async def update_event(
    event_id: int,
    event_data: EventCreate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    """Replace an event's fields (and its schedule when one is sent)"""
    try:
        event = EventService.update_event(db, event_id, event_data)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(message="Event updated successfully", data=EventResponse.model_validate(event))

@router.delete("/events/{event_id}")
async def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    """Delete an event with its signups and schedule"""
    try:
        EventService.delete_event(db, event_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(
        message="Event deleted successfully",
        data={"deleted_event_id": event_id}
    )

@router.get("/schedule-template.xlsx")
async def download_schedule_template(admin: Profile = Depends(require_admin)):
    """Download the volunteer schedule Excel template"""
    return Response(
        content=ExcelService.create_schedule_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=volunteer_schedule_template.xlsx"}
    )

@router.post("/events/{event_id}/schedule")
async def upload_schedule(
    event_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    """Replace an event's volunteer schedule from an Excel upload"""
    event = EventRepo.get_by_id(db, event_id)
    if not event:
        raise not_found_error("Event")

    if not (file.filename or "").endswith(('.xlsx', '.xls')):
        return error_response(
            message="Invalid file format. Please upload an Excel file (.xlsx or .xls)",
            status_code=400
        )

    file_content = await file.read()
    if len(file_content) > settings.MAX_UPLOAD_SIZE:
        return error_response(message="File is too large.", status_code=413)

    success, errors, rows = ExcelService.parse_schedule_upload(file_content)
    if not success:
        return error_response(
            message="Excel file validation failed",
            details=errors,
            status_code=422
        )

    event = EventService.replace_schedule(db, event_id, rows)
    return success_response(
        message=f"Schedule imported. {len(event.schedule_rows)} rows.",
        data=EventResponse.model_validate(event)
    )

# -------- Signups --------

@router.get("/events/{event_id}/signups")
async def list_event_signups(
    event_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    """Confirmed volunteers and the waitlist for an event"""
    try:
        roster = SignupService.roster(db, event_id)
    except ServiceError as e:
        return service_error_response(e)

    event = roster["event"]
    return success_response(
        message="Signups retrieved successfully",
        data={
            "event": EventResponse.model_validate(event),
            "capacity": event.capacity,
            "confirmed": [_signup_row(s) for s in roster["confirmed"]],
            "waitlisted": [_signup_row(s) for s in roster["waitlisted"]],
        }
    )

@router.get("/events/{event_id}/signups.xlsx")
async def export_event_signups(
    event_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    """Export an event's volunteer roster to Excel"""
    try:
        content = ExcelService.export_roster(event_id, db)
    except ServiceError as e:
        return service_error_response(e)

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=volunteers_event_{event_id}.xlsx"}
    )

# -------- Shipments --------

@router.get("/shipments")
async def list_shipments(
    event_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    shipments = ShippingService.list_shipments(db, event_id)
    return success_response(
        message="Shipments retrieved successfully",
        data={"shipments": [ShipmentResponse.model_validate(s) for s in shipments]}
    )

@router.post("/shipments")
async def create_shipment(
    shipment_data: ShipmentCreate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    try:
        shipment = ShippingService.create_shipment(db, admin, shipment_data)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(
        message="Shipment created successfully",
        data=ShipmentResponse.model_validate(shipment),
        status_code=201
    )

@router.patch("/shipments/{shipment_id}")
async def update_shipment(
    shipment_id: int,
    shipment_update: ShipmentUpdate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    try:
        shipment = ShippingService.update_shipment(db, shipment_id, shipment_update)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(message="Shipment updated successfully", data=ShipmentResponse.model_validate(shipment))

@router.delete("/shipments/{shipment_id}")
async def delete_shipment(
    shipment_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    try:
        ShippingService.delete_shipment(db, shipment_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(message="Shipment deleted successfully", data={"deleted_shipment_id": shipment_id})

@router.post("/shipments/{shipment_id}/refresh")
async def refresh_shipment(
    shipment_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin),
    client: Ship24Client = Depends(get_ship24_client)
):
    """Pull the latest status from the tracking provider"""
    try:
        shipment = await ShippingService.refresh_shipment(db, shipment_id, client)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(message="Shipment refreshed", data=ShipmentResponse.model_validate(shipment))

# -------- Chat log --------

@router.get("/chat-log")
async def list_chat_log(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    entries = ChatLogRepo.newest_first(db, limit=per_page, offset=(page - 1) * per_page)
    return paginated_response(
        message="Chat log retrieved",
        key="entries",
        items=[ChatLogEntry.model_validate(e) for e in entries],
        page=page,
        per_page=per_page,
        total=ChatLogRepo.count(db)
    )

@router.get("/chat-log/export")
async def export_chat_log(
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_admin)
):
    """Download the chat log as CSV"""
    csv_content = ExcelService.export_chat_log_csv(db)
    return Response(
        content=csv_content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="chat-log-{date.today().isoformat()}.csv"'}
    )
