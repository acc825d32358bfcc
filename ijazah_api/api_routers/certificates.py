"""Certificate issuance, retrieval and public verification endpoints.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import Response

from .. import certificate_service
from ..api_utils import get_current_user, get_store, require_scholar
from ..models import CertificateGenerateRequest, CertificateIssuedResponse, VerificationResponse
from ..store import JsonStore

router = APIRouter(tags=["Certificates"])
logger = logging.getLogger(__name__)


@router.post("/certificates/generate", response_model=CertificateIssuedResponse, operation_id="generate_certificate")
async def generate_certificate(
    payload: CertificateGenerateRequest,
    user: Dict[str, Any] = Depends(require_scholar),
    store: JsonStore = Depends(get_store),
):
    """Issue the certificate of an approved application.

    Repeated calls for the same application return the existing certificate
    with ``created`` set to false.
    """
    return certificate_service.generate_certificate(store, user, payload.application_id)


@router.get("/certificates/me", operation_id="list_my_certificates")
async def list_my_certificates(
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    certificates = certificate_service.list_my_certificates(store, user)
    return {"certificates": certificates, "total": len(certificates)}


@router.get("/certificates/{certificate_id}", operation_id="get_certificate")
async def get_certificate(
    certificate_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    return certificate_service.get_certificate(store, user, certificate_id)


@router.get("/certificates/{certificate_id}/qr.png", operation_id="get_certificate_qr")
async def get_certificate_qr(
    certificate_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    """QR code (PNG) pointing at the public verification page."""
    certificate = certificate_service.get_certificate(store, user, certificate_id)
    url = certificate.get("verification_url") or certificate_service.verification_url(
        certificate["certificate_number"]
    )
    return Response(content=certificate_service.qr_png_bytes(url), media_type="image/png")


def _verify(
    store: JsonStore,
    number: Optional[str],
    method: str,
    request: Request,
    user_agent: Optional[str],
) -> Dict[str, Any]:
    return certificate_service.verify_certificate(
        store,
        number,
        method=method,
        ip=request.client.host if request.client else None,
        user_agent=user_agent,
    )


@router.get("/verify", response_model=VerificationResponse, operation_id="verify_certificate_query")
async def verify_by_query(
    request: Request,
    certificate: Optional[str] = Query(None, description="Certificate number"),
    user_agent: Optional[str] = Header(None),
    store: JsonStore = Depends(get_store),
):
    """Public verification by ``?certificate=<number>`` (the QR code landing form)."""
    return _verify(store, certificate, "certificate_number", request, user_agent)


@router.get("/verify/{certificate_number}", response_model=VerificationResponse, operation_id="verify_certificate")
async def verify_by_path(
    request: Request,
    certificate_number: str,
    user_agent: Optional[str] = Header(None),
    store: JsonStore = Depends(get_store),
):
    """Public verification of a certificate number (the URL encoded in QR codes)."""
    return _verify(store, certificate_number, "qr_code", request, user_agent)
