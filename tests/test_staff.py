"""Tests for staff and department endpoints."""

import pytest
from httpx import AsyncClient

from app.models.staff import StaffRole

API = "/api/v1"


def _staff(**overrides) -> dict:
    body = {
        "first_name": "Lisa",
        "last_name": "Cuddy",
        "role": "Administrator",
        "phone": "555-0111",
        "email": "lisa.cuddy@hospital.test",
        "hire_date": "2015-04-01",
    }
    body.update(overrides)
    return body


# ── Departments ─────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_and_list_departments(async_client: AsyncClient, auth_headers: dict):
    resp = await async_client.post(
        f"{API}/departments", json={"name": "Cardiology", "location": "Wing A"}, headers=auth_headers
    )
    assert resp.status_code == 201
    assert resp.json()["name"] == "Cardiology"

    names = [d["name"] for d in (await async_client.get(f"{API}/departments", headers=auth_headers)).json()]
    assert names == ["Cardiology", "Internal Medicine"]


@pytest.mark.asyncio
async def test_department_staff_listing(
    async_client: AsyncClient, auth_headers: dict, department, doctor_user: dict
):
    resp = await async_client.get(f"{API}/departments/{department.id}/staff", headers=auth_headers)
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()] == [doctor_user["staff_id"]]


@pytest.mark.asyncio
async def test_delete_department_with_staff_is_400(
    async_client: AsyncClient, auth_headers: dict, department
):
    resp = await async_client.delete(f"{API}/departments/{department.id}", headers=auth_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_delete_empty_department(async_client: AsyncClient, auth_headers: dict):
    dept_id = (await async_client.post(
        f"{API}/departments", json={"name": "Radiology"}, headers=auth_headers
    )).json()["id"]
    resp = await async_client.delete(f"{API}/departments/{dept_id}", headers=auth_headers)
    assert resp.status_code == 200


# ── Staff ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_staff(async_client: AsyncClient, auth_headers: dict, department):
    resp = await async_client.post(
        f"{API}/staff", json=_staff(department_id=department.id), headers=auth_headers
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["role"] == "Administrator"
    assert data["department_id"] == department.id


@pytest.mark.asyncio
async def test_create_staff_invalid_role_is_400(async_client: AsyncClient, auth_headers: dict):
    resp = await async_client.post(f"{API}/staff", json=_staff(role="Janitor"), headers=auth_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_staff_unknown_department_is_400(async_client: AsyncClient, auth_headers: dict):
    resp = await async_client.post(f"{API}/staff", json=_staff(department_id=999), headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Department does not exist"


@pytest.mark.asyncio
async def test_filter_staff_by_role(
    async_client: AsyncClient, auth_headers: dict, make_staff, doctor_user: dict
):
    await make_staff(StaffRole.NURSE, "Carla", "Espinosa")
    resp = await async_client.get(f"{API}/staff?role=Nurse", headers=auth_headers)
    assert resp.status_code == 200
    assert [s["last_name"] for s in resp.json()] == ["Espinosa"]


@pytest.mark.asyncio
async def test_update_staff(async_client: AsyncClient, auth_headers: dict, make_staff):
    nurse = await make_staff(StaffRole.NURSE, "Carla", "Espinosa")
    resp = await async_client.put(
        f"{API}/staff/{nurse.id}", json={"specialization": "Pediatrics"}, headers=auth_headers
    )
    assert resp.status_code == 200
    assert resp.json()["specialization"] == "Pediatrics"


@pytest.mark.asyncio
async def test_delete_staff_with_account_is_400(
    async_client: AsyncClient, auth_headers: dict, doctor_user: dict
):
    resp = await async_client.delete(f"{API}/staff/{doctor_user['staff_id']}", headers=auth_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_delete_staff(async_client: AsyncClient, auth_headers: dict, make_staff):
    nurse = await make_staff(StaffRole.NURSE, "Carla", "Espinosa")
    resp = await async_client.delete(f"{API}/staff/{nurse.id}", headers=auth_headers)
    assert resp.status_code == 200
    assert (await async_client.get(f"{API}/staff/{nurse.id}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_update_department_null_name_is_400(async_client: AsyncClient, auth_headers: dict, department):
    resp = await async_client.put(
        f"{API}/departments/{department.id}", json={"name": None}, headers=auth_headers
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"
    assert resp.json()["detail"] == "name cannot be null"


@pytest.mark.asyncio
async def test_update_staff_null_role_is_400(async_client: AsyncClient, auth_headers: dict, make_staff):
    nurse = await make_staff(StaffRole.NURSE, "Carla", "Espinosa")
    resp = await async_client.put(f"{API}/staff/{nurse.id}", json={"role": None}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "role cannot be null"


@pytest.mark.asyncio
async def test_list_staff_negative_skip_is_400(async_client: AsyncClient, auth_headers: dict):
    resp = await async_client.get(f"{API}/staff?skip=-1", headers=auth_headers)
    assert resp.status_code == 400
