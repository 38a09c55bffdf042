from __future__ import annotations

from talenthr.core.config import settings
from talenthr.models.employee import Employee
from talenthr.models.performance import Goal, PerformanceReview

from .conftest import create_member

API = settings.API_V1_STR

PERIOD = {"start_date": "2030-01-01T00:00:00", "end_date": "2030-06-30T00:00:00"}


async def _goal(client, user, headers, **overrides):
    body = {"title": "Ship the onboarding flow", "priority": "high", **overrides}
    return await client.post(f"{API}/goals", headers=headers(user), json=body)


async def test_create_own_goal(client, employee, headers):
    resp = await _goal(client, employee, headers, target_date="2030-09-01T00:00:00")
    assert resp.status_code == 201, resp.text
    goal = resp.json()["goal"]
    assert goal["user_id"] == str(employee.id)
    assert goal["assigned_by"] == str(employee.id)
    assert goal["status"] == "not-started"
    assert goal["progress"] == 0


async def test_progress_drives_status(client, employee, headers):
    goal_id = (await _goal(client, employee, headers)).json()["goal"]["id"]

    started = await client.put(
        f"{API}/goals/{goal_id}", headers=headers(employee), json={"action": "update-progress", "progress": 40}
    )
    assert started.json()["goal"]["status"] == "in-progress"
    assert started.json()["goal"]["progress"] == 40

    overshoot = await client.put(
        f"{API}/goals/{goal_id}", headers=headers(employee), json={"action": "update-progress", "progress": 140}
    )
    assert overshoot.json()["goal"]["progress"] == 100
    assert overshoot.json()["goal"]["status"] == "completed"

    missing = await client.put(f"{API}/goals/{goal_id}", headers=headers(employee), json={"action": "update-progress"})
    assert missing.status_code == 400


async def test_field_update_keeps_cancelled_status(client, employee, headers):
    goal_id = (await _goal(client, employee, headers)).json()["goal"]["id"]
    resp = await client.put(
        f"{API}/goals/{goal_id}",
        headers=headers(employee),
        json={"title": "Ship onboarding v2", "status": "cancelled", "progress": 30},
    )
    assert resp.status_code == 200
    goal = resp.json()["goal"]
    assert goal["title"] == "Ship onboarding v2"
    assert goal["status"] == "cancelled"
    assert goal["progress"] == 30


async def test_assigning_goals(client, manager, employee, outsider, headers):
    by_manager = await _goal(client, manager, headers, assign_to=str(employee.id))
    assert by_manager.status_code == 201
    assert by_manager.json()["goal"]["user_id"] == str(employee.id)
    assert by_manager.json()["goal"]["assigned_by"] == str(manager.id)

    outside_team = await _goal(client, manager, headers, assign_to=str(outsider.id))
    assert outside_team.status_code == 403

    by_employee = await _goal(client, employee, headers, assign_to=str(outsider.id))
    assert by_employee.status_code == 403


async def test_assign_to_user_without_employee_record(client, company, admin, headers):
    loose = await create_member(company, "employee", "loose@acme.com", with_employee=False)
    resp = await _goal(client, admin, headers, assign_to=str(loose.id))
    assert resp.status_code == 404


async def test_goal_permissions(client, employee, outsider, hr, other_company_admin, headers):
    goal_id = (await _goal(client, employee, headers)).json()["goal"]["id"]

    peer = await client.put(f"{API}/goals/{goal_id}", headers=headers(outsider), json={"title": "Mine now"})
    assert peer.status_code == 403
    foreign = await client.delete(f"{API}/goals/{goal_id}", headers=headers(other_company_admin))
    assert foreign.status_code == 403

    by_hr = await client.put(f"{API}/goals/{goal_id}", headers=headers(hr), json={"priority": "low"})
    assert by_hr.status_code == 200

    deleted = await client.delete(f"{API}/goals/{goal_id}", headers=headers(employee))
    assert deleted.status_code == 200
    assert await Goal.get(goal_id) is None


async def test_goal_list_scoping(client, admin, manager, employee, outsider, headers):
    await _goal(client, employee, headers, title="Emma goal")
    await _goal(client, outsider, headers, title="Olivia goal")
    await _goal(client, manager, headers, title="Max goal")

    mine = await client.get(f"{API}/goals", headers=headers(employee))
    assert [g["title"] for g in mine.json()["goals"]] == ["Emma goal"]
    assert mine.json()["goals"][0]["owner_name"] == "Emma Employee"

    team = await client.get(f"{API}/goals", headers=headers(manager))
    assert {g["title"] for g in team.json()["goals"]} == {"Emma goal", "Max goal"}

    everyone = await client.get(f"{API}/goals", headers=headers(admin))
    assert everyone.json()["count"] == 3

    completed = await client.get(f"{API}/goals", headers=headers(admin), params={"status": "completed"})
    assert completed.json()["count"] == 0


async def _review(client, reviewer, headers, employee_user, **overrides):
    emp = await Employee.find_one(Employee.user_id == employee_user.id)
    body = {"employee_id": str(emp.id), "review_period": PERIOD, "overall_rating": 4, **overrides}
    return await client.post(f"{API}/reviews", headers=headers(reviewer), json=body)


async def test_manager_reviews_team_member(client, manager, employee, outsider, headers):
    resp = await _review(client, manager, headers, employee, strengths="Ownership")
    assert resp.status_code == 201, resp.text
    review = resp.json()["review"]
    assert review["status"] == "draft"
    assert review["reviewer_id"] == str(manager.id)

    outside = await _review(client, manager, headers, outsider)
    assert outside.status_code == 403


async def test_review_validation_and_roles(client, hr, employee, outsider, headers):
    assert (await _review(client, employee, headers, outsider)).status_code == 403

    bad_rating = await _review(client, hr, headers, employee, overall_rating=6)
    assert bad_rating.status_code == 400

    reversed_period = await _review(
        client, hr, headers, employee,
        review_period={"start_date": "2030-06-30T00:00:00", "end_date": "2030-01-01T00:00:00"},
    )
    assert reversed_period.status_code == 400

    missing = await client.post(
        f"{API}/reviews",
        headers=headers(hr),
        json={"employee_id": "0" * 24, "review_period": PERIOD, "overall_rating": 3},
    )
    assert missing.status_code == 404


async def test_submit_review_once(client, hr, employee, headers):
    review_id = (await _review(client, hr, headers, employee)).json()["review"]["id"]

    edit = await client.put(f"{API}/reviews/{review_id}", headers=headers(hr), json={"comments": "Solid half"})
    assert edit.json()["review"]["comments"] == "Solid half"

    submitted = await client.put(f"{API}/reviews/{review_id}", headers=headers(hr), json={"action": "submit"})
    assert submitted.status_code == 200
    stored = await PerformanceReview.get(review_id)
    assert stored.status == "submitted"
    assert stored.submitted_at is not None

    again = await client.put(f"{API}/reviews/{review_id}", headers=headers(hr), json={"action": "submit"})
    assert again.status_code == 400
    assert again.json()["message"] == "Review has already been submitted"


async def test_only_reviewer_edits_review(client, hr, admin, employee, headers):
    review_id = (await _review(client, hr, headers, employee)).json()["review"]["id"]
    resp = await client.put(f"{API}/reviews/{review_id}", headers=headers(admin), json={"overall_rating": 1})
    assert resp.status_code == 403


async def test_review_list_scoping(client, hr, manager, employee, outsider, admin, headers):
    await _review(client, manager, headers, employee)
    await _review(client, hr, headers, outsider)

    own = await client.get(f"{API}/reviews", headers=headers(employee))
    assert own.json()["count"] == 1
    assert own.json()["reviews"][0]["employee_name"] == "Emma Employee"
    assert own.json()["reviews"][0]["reviewer_name"] == "Max Manager"

    assert (await client.get(f"{API}/reviews", headers=headers(manager))).json()["count"] == 1
    assert (await client.get(f"{API}/reviews", headers=headers(admin))).json()["count"] == 2


async def test_nulls_do_not_overwrite_required_goal_and_review_fields(client, hr, employee, headers):
    goal_id = (await _goal(client, employee, headers, target_date="2030-09-01T00:00:00")).json()["goal"]["id"]
    resp = await client.put(
        f"{API}/goals/{goal_id}",
        headers=headers(employee),
        json={"title": None, "category": None, "target_date": None},
    )
    assert resp.status_code == 200, resp.text
    goal = resp.json()["goal"]
    assert goal["title"] == "Ship the onboarding flow"
    assert goal["category"] == "individual"
    assert goal["target_date"] is None
    assert (await client.get(f"{API}/goals", headers=headers(employee))).status_code == 200

    review_id = (await _review(client, hr, headers, employee)).json()["review"]["id"]
    resp = await client.put(
        f"{API}/reviews/{review_id}", headers=headers(hr), json={"overall_rating": None, "comments": "On track"}
    )
    assert resp.status_code == 200, resp.text
    stored = await PerformanceReview.get(review_id)
    assert stored.overall_rating == 4
    assert stored.comments == "On track"
