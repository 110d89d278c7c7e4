from pydantic import BaseModel, EmailStr, Field
from datetime import date
from typing import Literal, Optional


class PatientRegister(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str
    national_id: str
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    recaptcha_token: Optional[str] = None


class DoctorRegister(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str
    national_id: str
    medical_license_id: str
    date_of_birth: date
    phone: Optional[str] = None
    recaptcha_token: Optional[str] = None


class RegistrationResponse(BaseModel):
    account_id: str
    identifier: Optional[str] = None
    role: str


class LoginRequest(BaseModel):
    """
    ``credentials`` is an email, a patient ID, or (doctors) a phone number or
    licence ID. ``secret`` is the password, or the national ID when
    ``method`` is ``national_id``.
    """
    credentials: str
    secret: str
    method: Literal["password", "national_id"] = "password"
    recaptcha_token: Optional[str] = None


class AccountSummary(BaseModel):
    account_id: str
    role: str
    display_name: str
    email: str
    identifier: Optional[str] = None
    access_token: str
    token_type: str = "bearer"


class NationalIdCheck(BaseModel):
    national_id: str


class NationalIdStatus(BaseModel):
    already_registered: bool
    message: Optional[str] = None
