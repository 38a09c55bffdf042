from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from talenthr.models.employee import Address, EmergencyContact
from talenthr.models.users import OtpPurpose, Role


class SignupRequest(BaseModel):
    """Company admin signup (role + company_name) or invitation signup (token)"""

    email: EmailStr
    password: str = Field(min_length=8)
    name: str = Field(min_length=2, max_length=100)
    role: Optional[str] = None
    company_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    token: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()

    @field_validator("name", "company_name")
    @classmethod
    def strip(cls, v):
        return v.strip() if v else v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    role: Role

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


class OtpSendRequest(BaseModel):
    email: EmailStr
    purpose: OtpPurpose


class OtpVerifyRequest(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=6, max_length=6)
    purpose: OtpPurpose


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    role: Optional[Role] = None
    status: Optional[Literal["active", "inactive", "pending"]] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=r"^\+?[\d\s\-()]+$")
    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)


class CompanySettingsUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    industry: Optional[str] = None
    size: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    currency: Optional[str] = None
    date_format: Optional[str] = None


class InvitationCreate(BaseModel):
    email: EmailStr
    # checked in the service so the message matches the other role errors
    role: str
