"""
Inbound webhooks from the package-tracking provider
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from volunteer_portal.core.db import get_db
from volunteer_portal.services.shipping_service import ShippingService
from volunteer_portal.utils.security import verify_webhook_token

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/ship24", dependencies=[Depends(verify_webhook_token)])
async def ship24_webhook(request: Request, db: Session = Depends(get_db)):
    """Merge pushed tracking events into the matching shipments"""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse({"error": "Invalid JSON"}, status_code=400)

    updated = ShippingService.apply_webhook(db, payload)
    logger.info("Ship24 webhook processed, %s shipment(s) updated", updated)
    return {"ok": True}
