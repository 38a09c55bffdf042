from __future__ import annotations

from talenthr.core.config import settings
from talenthr.models.employee import Department
from talenthr.models.recruitment import Candidate, Interview, JobPosting

from .conftest import create_member

API = settings.API_V1_STR


async def _job(client, user, headers, **overrides):
    body = {
        "title": "Backend Engineer",
        "description": "Build and run our APIs",
        "location": "Berlin",
        "status": "published",
        "tags": ["python", "mongodb"],
        **overrides,
    }
    resp = await client.post(f"{API}/jobs", headers=headers(user), json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["job"]


async def _candidate(client, user, headers, job_id, email="carl@example.com", **overrides):
    body = {"job_posting_id": job_id, "first_name": "Carl", "last_name": "Candidate", "email": email, **overrides}
    return await client.post(f"{API}/candidates", headers=headers(user), json=body)


async def test_create_and_list_jobs(client, company, recruiter, employee, headers):
    dept = await Department.find_one(Department.company_id == company.id, Department.name == "Engineering")
    job = await _job(client, recruiter, headers, department_id=str(dept.id), salary_range={"min": 60000, "max": 90000})
    assert job["posted_by"] == str(recruiter.id)
    assert job["applications_count"] == 0
    assert job["salary_range"]["currency"] == "USD"
    await _job(client, recruiter, headers, title="Office Manager", description="Keep things running", status="draft")

    everything = await client.get(f"{API}/jobs", headers=headers(employee))
    assert everything.json()["count"] == 2

    published = await client.get(f"{API}/jobs", headers=headers(employee), params={"status": "published"})
    assert [j["title"] for j in published.json()["jobs"]] == ["Backend Engineer"]

    search = await client.get(f"{API}/jobs", headers=headers(employee), params={"search": "office"})
    assert [j["title"] for j in search.json()["jobs"]] == ["Office Manager"]


async def test_job_rules(client, company, admin, employee, other_company_admin, headers):
    forbidden = await client.post(
        f"{API}/jobs", headers=headers(employee), json={"title": "Sneaky", "description": "Nope"}
    )
    assert forbidden.status_code == 403

    foreign_dept = await Department.find_one(Department.company_id == other_company_admin.company_id)
    bad_dept = await client.post(
        f"{API}/jobs",
        headers=headers(admin),
        json={"title": "Analyst", "description": "Numbers", "department_id": str(foreign_dept.id)},
    )
    assert bad_dept.status_code == 400

    job = await _job(client, admin, headers)
    foreign = await client.get(f"{API}/jobs/{job['id']}", headers=headers(other_company_admin))
    assert foreign.status_code == 403


async def test_job_views_increment(client, recruiter, employee, headers):
    job = await _job(client, recruiter, headers)
    first = await client.get(f"{API}/jobs/{job['id']}", headers=headers(employee))
    second = await client.get(f"{API}/jobs/{job['id']}", headers=headers(employee))
    assert first.json()["job"]["views"] == 1
    assert second.json()["job"]["views"] == 2
    assert (await JobPosting.get(job["id"])).views == 2


async def test_update_and_cancel_job(client, recruiter, headers):
    job = await _job(client, recruiter, headers)
    updated = await client.put(
        f"{API}/jobs/{job['id']}", headers=headers(recruiter), json={"status": "closed", "number_of_openings": 3}
    )
    assert updated.json()["job"]["status"] == "closed"
    assert updated.json()["job"]["number_of_openings"] == 3

    deleted = await client.delete(f"{API}/jobs/{job['id']}", headers=headers(recruiter))
    assert deleted.status_code == 200
    assert (await JobPosting.get(job["id"])).status == "cancelled"


async def test_candidate_defaults_and_application_count(client, recruiter, headers):
    job = await _job(client, recruiter, headers)
    resp = await _candidate(client, recruiter, headers, job["id"], email="Carl@Example.com", skills=["python"])
    assert resp.status_code == 201, resp.text
    candidate = resp.json()["candidate"]
    assert candidate["email"] == "carl@example.com"
    assert candidate["status"] == "applied"
    assert candidate["stage"] == "application"
    assert candidate["recruiter_id"] == str(recruiter.id)

    refreshed = await client.get(f"{API}/jobs/{job['id']}", headers=headers(recruiter))
    assert refreshed.json()["job"]["applications_count"] == 1


async def test_duplicate_application_is_409(client, recruiter, headers):
    job = await _job(client, recruiter, headers)
    assert (await _candidate(client, recruiter, headers, job["id"])).status_code == 201
    dupe = await _candidate(client, recruiter, headers, job["id"], email="CARL@example.com")
    assert dupe.status_code == 409
    assert dupe.json()["message"] == "Candidate has already applied for this job"

    other_job = await _job(client, recruiter, headers, title="Data Engineer")
    assert (await _candidate(client, recruiter, headers, other_job["id"])).status_code == 201


async def test_candidate_for_foreign_job(client, recruiter, other_company_admin, headers):
    job = await _job(client, other_company_admin, headers)
    resp = await _candidate(client, recruiter, headers, job["id"])
    assert resp.status_code == 403


async def test_recruiter_sees_only_assigned_candidates(client, company, admin, recruiter, headers):
    other_recruiter = await create_member(company, "recruiter", "ron@acme.com", "Ron Recruiter")
    job = await _job(client, admin, headers)
    mine = (await _candidate(client, recruiter, headers, job["id"], email="a@example.com")).json()["candidate"]
    theirs = (await _candidate(client, other_recruiter, headers, job["id"], email="b@example.com")).json()["candidate"]

    listing = await client.get(f"{API}/candidates", headers=headers(recruiter))
    assert [c["id"] for c in listing.json()["candidates"]] == [mine["id"]]

    as_admin = await client.get(f"{API}/candidates", headers=headers(admin))
    assert as_admin.json()["count"] == 2

    blocked = await client.get(f"{API}/candidates/{theirs['id']}", headers=headers(recruiter))
    assert blocked.status_code == 403


async def test_only_admin_or_hr_reassigns(client, company, hr, recruiter, headers):
    other_recruiter = await create_member(company, "recruiter", "ron@acme.com", "Ron Recruiter")
    job = await _job(client, recruiter, headers)
    candidate = (await _candidate(client, recruiter, headers, job["id"])).json()["candidate"]

    by_recruiter = await client.put(
        f"{API}/candidates/{candidate['id']}",
        headers=headers(recruiter),
        json={"recruiter_id": str(other_recruiter.id)},
    )
    assert by_recruiter.status_code == 403

    by_hr = await client.put(
        f"{API}/candidates/{candidate['id']}",
        headers=headers(hr),
        json={"recruiter_id": str(other_recruiter.id), "stage": "technical", "status": "interview"},
    )
    assert by_hr.status_code == 200
    stored = await Candidate.get(candidate["id"])
    assert stored.recruiter_id == other_recruiter.id
    assert stored.stage == "technical"


async def test_employees_cannot_see_candidates(client, employee, headers):
    assert (await client.get(f"{API}/candidates", headers=headers(employee))).status_code == 403


async def test_interview_lifecycle(client, recruiter, manager, employee, headers):
    job = await _job(client, recruiter, headers)
    candidate = (await _candidate(client, recruiter, headers, job["id"])).json()["candidate"]

    created = await client.post(
        f"{API}/interviews",
        headers=headers(recruiter),
        json={
            "candidate_id": candidate["id"],
            "job_posting_id": job["id"],
            "type": "technical",
            "scheduled_at": "2030-04-02T14:00:00",
            "interviewers": [str(manager.id)],
        },
    )
    assert created.status_code == 201, created.text
    interview = created.json()["interview"]
    assert interview["organizer_id"] == str(recruiter.id)
    assert interview["status"] == "scheduled"
    assert interview["duration"] == 60

    detail = await client.get(f"{API}/candidates/{candidate['id']}", headers=headers(recruiter))
    assert [i["id"] for i in detail.json()["candidate"]["interviews"]] == [interview["id"]]

    assert (await client.get(f"{API}/interviews/{interview['id']}", headers=headers(manager))).status_code == 200
    assert (await client.get(f"{API}/interviews/{interview['id']}", headers=headers(employee))).status_code == 403

    feedback = await client.put(
        f"{API}/interviews/{interview['id']}",
        headers=headers(manager),
        json={"status": "completed", "feedback": {"rating": 4, "recommendation": "hire", "strengths": "Clear thinker"}},
    )
    assert feedback.status_code == 200, feedback.text
    stored = await Interview.get(interview["id"])
    assert stored.status == "completed"
    assert len(stored.feedback) == 1
    assert stored.feedback[0].interviewer_id == manager.id
    assert stored.feedback[0].recommendation == "hire"


async def test_interview_list_scope_and_window(client, recruiter, manager, employee, hr, headers):
    job = await _job(client, recruiter, headers)
    candidate = (await _candidate(client, recruiter, headers, job["id"])).json()["candidate"]
    for when in ("2030-04-02T14:00:00", "2030-05-10T09:00:00"):
        await client.post(
            f"{API}/interviews",
            headers=headers(recruiter),
            json={
                "candidate_id": candidate["id"],
                "job_posting_id": job["id"],
                "type": "phone-screen",
                "scheduled_at": when,
                "interviewers": [str(manager.id)],
            },
        )

    assert (await client.get(f"{API}/interviews", headers=headers(manager))).json()["count"] == 2
    assert (await client.get(f"{API}/interviews", headers=headers(employee))).json()["count"] == 0
    assert (await client.get(f"{API}/interviews", headers=headers(hr))).json()["count"] == 2

    april = await client.get(
        f"{API}/interviews",
        headers=headers(recruiter),
        params={"from": "2030-04-01T00:00:00", "to": "2030-04-30T23:59:59"},
    )
    assert april.json()["count"] == 1


async def test_nulls_do_not_overwrite_required_recruiting_fields(client, recruiter, headers):
    job = await _job(client, recruiter, headers)
    resp = await client.put(
        f"{API}/jobs/{job['id']}",
        headers=headers(recruiter),
        json={"title": None, "employment_type": None, "remote": None, "location": None},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["job"]["title"] == "Backend Engineer"
    assert resp.json()["job"]["employment_type"] == "full-time"
    assert resp.json()["job"]["location"] is None
    assert (await client.get(f"{API}/jobs/{job['id']}", headers=headers(recruiter))).status_code == 200
    assert (await client.get(f"{API}/jobs", headers=headers(recruiter))).status_code == 200

    candidate = (await _candidate(client, recruiter, headers, job["id"])).json()["candidate"]
    resp = await client.put(
        f"{API}/candidates/{candidate['id']}",
        headers=headers(recruiter),
        json={"first_name": None, "stage": None, "notes": "Strong referral"},
    )
    assert resp.status_code == 200, resp.text
    stored = await Candidate.get(candidate["id"])
    assert stored.first_name == "Carl"
    assert stored.stage == "application"
    assert stored.notes == "Strong referral"

    interview = await client.post(
        f"{API}/interviews",
        headers=headers(recruiter),
        json={
            "candidate_id": candidate["id"],
            "job_posting_id": job["id"],
            "type": "phone-screen",
            "scheduled_at": "2030-04-02T14:00:00",
        },
    )
    assert interview.status_code == 201, interview.text
    interview_id = interview.json()["interview"]["id"]
    resp = await client.put(
        f"{API}/interviews/{interview_id}",
        headers=headers(recruiter),
        json={"type": None, "scheduled_at": None, "duration": 45},
    )
    assert resp.status_code == 200, resp.text
    stored = await Interview.get(interview_id)
    assert stored.type == "phone-screen"
    assert stored.scheduled_at is not None
    assert stored.duration == 45
