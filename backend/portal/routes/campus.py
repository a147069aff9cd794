"""
Campus portal login and profile routes, proxied to the guard/student backend.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from portal.integrations.portal_api import PortalApiClient
from portal.models.result import Result
from portal.routes.deps import get_portal, respond

router = APIRouter()


class OtpRequest(BaseModel):
    email: str


class OtpVerifyRequest(BaseModel):
    email: str
    otp: str


@router.post("/auth/send-otp")
async def send_otp(body: OtpRequest, portal: PortalApiClient = Depends(get_portal)):
    return respond(await portal.send_otp(body.email))


@router.post("/auth/verify-otp")
async def verify_otp(body: OtpVerifyRequest, portal: PortalApiClient = Depends(get_portal)):
    """Log in; the stored user is returned as data."""
    return respond(await portal.verify_otp(body.email, body.otp))


@router.get("/auth/me")
async def current_user(portal: PortalApiClient = Depends(get_portal)):
    return respond(Result.ok(portal.current_user()))


@router.post("/auth/logout")
async def logout(portal: PortalApiClient = Depends(get_portal)):
    portal.logout()
    return respond(Result.ok())


@router.get("/{role}/profile")
async def profile(role: str, portal: PortalApiClient = Depends(get_portal)):
    return respond(await portal.get_profile(role))


@router.get("/{role}/dashboard")
async def dashboard(role: str, portal: PortalApiClient = Depends(get_portal)):
    return respond(await portal.get_dashboard(role))
