"""
Public contact (sales enquiry) endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from takt.core.logging_config import get_logger
from takt.core.models.io import ApiResponse, ErrorResponse, MessageData
from takt.core.models.io.contact import ContactForm
from takt.server.core.constant import SUPPORT_EMAIL
from takt.server.services.deps import EmailClientDep

logger = get_logger(__name__)

router = APIRouter(tags=["contact"])


@router.post(
    "",
    response_model=ApiResponse[MessageData],
    status_code=status.HTTP_202_ACCEPTED,
    summary="Contact Sales",
    description="Forward a contact form from the public site to the sales inbox.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid form"},
        500: {"model": ErrorResponse, "description": "Email could not be sent"},
    },
)
async def submit_contact(data: ContactForm, email_client: EmailClientDep) -> ApiResponse[MessageData]:
    fields = {
        "Name": data.name,
        "Position": data.position,
        "Phone": data.number,
        "Email": str(data.email),
        "Company": data.company,
        "Country": data.country,
    }
    await email_client.send_contact_enquiry(SUPPORT_EMAIL, fields)
    logger.info(f"Contact request forwarded for company '{data.company}'")
    return ApiResponse(data=MessageData(message="Thanks! Our team will get back to you shortly."))
