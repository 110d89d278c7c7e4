from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from portal.auth import Principal, get_current_user
from portal.config import Settings, get_settings
from portal.database import get_db
from portal.models.account import Account
from portal.schemas.auth import (
    AccountSummary,
    DoctorRegister,
    LoginRequest,
    NationalIdCheck,
    NationalIdStatus,
    PatientRegister,
    RegistrationResponse,
)
from portal.services import login_service, registration_service
from portal.services.authenticator import Authenticator
from portal.services.recaptcha_service import RecaptchaVerifier

router = APIRouter()


async def _check_recaptcha(settings: Settings, token, action: str):
    result = await RecaptchaVerifier(settings).verify(token, action)
    if not result.success:
        raise HTTPException(status_code=400, detail="Human verification failed, please try again")


@router.post("/patients/register", response_model=RegistrationResponse, status_code=201)
async def register_patient(
    body: PatientRegister,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await _check_recaptcha(settings, body.recaptcha_token, "register")
    result = await registration_service.register_patient(db, settings, body)
    return RegistrationResponse(account_id=result.account_id, identifier=result.identifier, role="patient")


@router.post("/doctors/register", response_model=RegistrationResponse, status_code=201)
async def register_doctor(
    body: DoctorRegister,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await _check_recaptcha(settings, body.recaptcha_token, "register")
    result = await registration_service.register_doctor(db, settings, body)
    return RegistrationResponse(account_id=result.account_id, role="doctor")


@router.post("/patients/login", response_model=AccountSummary)
async def login_patient(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Body: {"credentials": "<email or patient ID>", "secret": "<password or national ID>",
           "method": "password" | "national_id"}
    """
    await _check_recaptcha(settings, body.recaptcha_token, "login")
    return await login_service.login(db, settings, body.credentials, body.secret, "patient", body.method)


@router.post("/doctors/login", response_model=AccountSummary)
async def login_doctor(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Body: {"credentials": "<email, phone or licence ID>", "secret": "<password>"}"""
    await _check_recaptcha(settings, body.recaptcha_token, "login")
    return await login_service.login(db, settings, body.credentials, body.secret, "doctor", body.method)


@router.post("/logout")
async def logout(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: Principal = Depends(get_current_user),
):
    await Authenticator(db, settings).sign_out(current_user.jti)
    return {"signed_out": True}


@router.get("/me")
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: Principal = Depends(get_current_user),
):
    account = await db.get(Account, current_user.account_id)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return {
        "account_id": account.id,
        "role": account.role,
        "display_name": account.display_name,
        "email": account.email,
    }


@router.post("/national-id/check", response_model=NationalIdStatus)
async def check_national_id(body: NationalIdCheck, db: AsyncSession = Depends(get_db)):
    return await registration_service.check_national_id(db, body.national_id)
