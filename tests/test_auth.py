from __future__ import annotations

from datetime import timedelta

import pytest

from talenthr.core.config import settings
from talenthr.core.security import create_access_token, create_token_pair
from talenthr.models.company import Company
from talenthr.models.employee import Department, Employee
from talenthr.models.leave import LeaveType
from talenthr.models.users import OtpCode, User
from talenthr.services import company_service

from .conftest import PASSWORD

API = settings.API_V1_STR


@pytest.fixture(autouse=True)
def expose_otp(monkeypatch):
    monkeypatch.setattr(settings, "EXPOSE_OTP", True)


async def _verified_email(client, email: str) -> None:
    sent = await client.post(f"{API}/otp/send", json={"email": email, "purpose": "company_admin_signup"})
    assert sent.status_code == 200
    assert sent.json()["expires_in"] == 600
    code = sent.json()["otp"]
    verified = await client.post(
        f"{API}/otp/verify", json={"email": email, "otp": code, "purpose": "company_admin_signup"}
    )
    assert verified.status_code == 200


def _set_cookies(response) -> str:
    return " ".join(response.headers.get_list("set-cookie"))


async def test_company_admin_signup_creates_company_and_defaults(client):
    await _verified_email(client, "founder@initech.com")

    resp = await client.post(
        f"{API}/auth/signup",
        json={
            "email": "Founder@Initech.com",
            "password": PASSWORD,
            "name": "Fiona Founder",
            "role": "company_admin",
            "company_name": "Initech",
        },
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["user"]["email"] == "founder@initech.com"
    assert body["user"]["company"]["slug"] == "initech"
    assert body["employee_id"] == "INITECH-EMP001"
    assert "access_token" in resp.cookies
    assert "refresh_token" in resp.cookies

    company = await Company.find_one(Company.slug == "initech")
    assert await Department.find(Department.company_id == company.id).count() == 8
    leave_types = await LeaveType.find(LeaveType.company_id == company.id).to_list()
    assert {lt.code: lt.annual_quota for lt in leave_types} == {"SL": 10, "VL": 15, "PL": 5, "CL": 12}
    vacation = next(lt for lt in leave_types if lt.code == "VL")
    assert vacation.carry_forward and vacation.max_carry_forward == 5


async def test_signup_requires_verified_otp(client):
    resp = await client.post(
        f"{API}/auth/signup",
        json={
            "email": "nobody@initech.com",
            "password": PASSWORD,
            "name": "No Body",
            "role": "company_admin",
            "company_name": "Initech",
        },
    )
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "message": "Email not verified. Please verify your email with OTP first.",
    }


async def test_signup_rejects_existing_company_name_case_insensitively(client, company):
    await _verified_email(client, "copycat@acme.com")
    resp = await client.post(
        f"{API}/auth/signup",
        json={
            "email": "copycat@acme.com",
            "password": PASSWORD,
            "name": "Copy Cat",
            "role": "company_admin",
            "company_name": "ACME corp",
        },
    )
    assert resp.status_code == 409
    assert await User.find_one(User.email == "copycat@acme.com") is None


async def test_failed_signup_leaves_no_company_or_user(client, monkeypatch):
    await _verified_email(client, "founder@initech.com")

    async def broken_seed(*args, **kwargs):
        raise RuntimeError("seeding failed")

    monkeypatch.setattr(company_service, "seed_leave_types", broken_seed)
    resp = await client.post(
        f"{API}/auth/signup",
        json={
            "email": "founder@initech.com",
            "password": PASSWORD,
            "name": "Fiona Founder",
            "role": "company_admin",
            "company_name": "Initech",
        },
    )
    assert resp.status_code == 500
    assert await Company.find_one(Company.slug == "initech") is None
    assert await User.find_one(User.email == "founder@initech.com") is None
    assert await Employee.find_all().count() == 0
    assert await Department.find_all().count() == 0


async def test_signup_without_mode_is_rejected(client):
    resp = await client.post(
        f"{API}/auth/signup",
        json={"email": "x@initech.com", "password": PASSWORD, "name": "Xavier"},
    )
    assert resp.status_code == 400


async def test_signup_validation_errors_are_400(client):
    resp = await client.post(
        f"{API}/auth/signup",
        json={"email": "x@initech.com", "password": "short", "name": "Xavier", "token": "abc"},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert "password" in resp.json()["message"]


async def test_otp_wrong_code_counts_attempts(client):
    await client.post(f"{API}/otp/send", json={"email": "guess@initech.com", "purpose": "login"})

    for remaining in (4, 3, 2, 1, 0):
        resp = await client.post(
            f"{API}/otp/verify", json={"email": "guess@initech.com", "otp": "000000", "purpose": "login"}
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == f"Invalid OTP code. {remaining} attempts remaining"

    resp = await client.post(
        f"{API}/otp/verify", json={"email": "guess@initech.com", "otp": "000000", "purpose": "login"}
    )
    assert resp.status_code == 429


async def test_otp_resend_replaces_unverified_code(client):
    for _ in range(3):
        await client.post(f"{API}/otp/send", json={"email": "again@initech.com", "purpose": "login"})
    assert await OtpCode.find(OtpCode.email == "again@initech.com").count() == 1
    stored = await OtpCode.find_one(OtpCode.email == "again@initech.com")
    assert len(stored.code_hash) > 6


async def test_otp_send_fails_without_mail_when_not_exposed(client, monkeypatch):
    monkeypatch.setattr(settings, "EXPOSE_OTP", False)
    resp = await client.post(f"{API}/otp/send", json={"email": "mail@initech.com", "purpose": "login"})
    assert resp.status_code == 500
    assert "otp" not in resp.json()


async def test_login_sets_cookies_and_last_login(client, admin):
    resp = await client.post(
        f"{API}/auth/login", json={"email": "ADMIN@acme.com", "password": PASSWORD, "role": "company_admin"}
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["company"]["name"] == "Acme Corp"
    cookies = _set_cookies(resp)
    assert "access_token=" in cookies and "refresh_token=" in cookies
    assert "httponly" in cookies.lower()

    refreshed = await User.get(admin.id)
    assert refreshed.last_login is not None


@pytest.mark.parametrize(
    "password, role",
    [("wrong-password", "company_admin"), (PASSWORD, "employee")],
)
async def test_login_rejects_bad_credentials_or_role(client, admin, password, role):
    resp = await client.post(f"{API}/auth/login", json={"email": "admin@acme.com", "password": password, "role": role})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid email, password, or role"


async def test_login_rejects_inactive_user(client, employee):
    employee.status = "inactive"
    await employee.save()
    resp = await client.post(f"{API}/auth/login", json={"email": employee.email, "password": PASSWORD, "role": "employee"})
    assert resp.status_code == 403


async def test_login_rejects_suspended_company(client, company, admin):
    company.status = "suspended"
    await company.save()
    resp = await client.post(
        f"{API}/auth/login", json={"email": "admin@acme.com", "password": PASSWORD, "role": "company_admin"}
    )
    assert resp.status_code == 403


async def test_me_with_bearer_token(client, admin, headers):
    resp = await client.get(f"{API}/auth/me", headers=headers(admin))
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["email"] == "admin@acme.com"
    employee = await Employee.find_one(Employee.user_id == admin.id)
    assert user["employee_id"] == str(employee.id)


async def test_me_requires_authentication(client):
    resp = await client.get(f"{API}/auth/me")
    assert resp.status_code == 401


async def test_expired_access_cookie_is_silently_refreshed(client, admin):
    expired = create_access_token({"sub": str(admin.id), "email": admin.email, "role": admin.role}, timedelta(seconds=-1))
    _, refresh = create_token_pair(admin)

    resp = await client.get(
        f"{API}/auth/me", headers={"Cookie": f"access_token={expired}; refresh_token={refresh}"}
    )
    assert resp.status_code == 200
    assert "access_token=" in _set_cookies(resp)


async def test_expired_access_cookie_without_refresh_is_401(client, admin):
    expired = create_access_token({"sub": str(admin.id)}, timedelta(seconds=-1))
    resp = await client.get(f"{API}/auth/me", headers={"Cookie": f"access_token={expired}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Session expired. Please login again."


async def test_refresh_endpoint(client, admin):
    _, refresh = create_token_pair(admin)
    resp = await client.post(f"{API}/auth/refresh", headers={"Cookie": f"refresh_token={refresh}"})
    assert resp.status_code == 200
    assert "access_token=" in _set_cookies(resp)

    missing = await client.post(f"{API}/auth/refresh")
    assert missing.status_code == 401


async def test_logout_clears_cookies(client):
    resp = await client.post(f"{API}/auth/logout")
    assert resp.status_code == 200
    cookies = _set_cookies(resp)
    assert "access_token=" in cookies and "refresh_token=" in cookies
    assert "Max-Age=0" in cookies
