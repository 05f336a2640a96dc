import pytest
from httpx import AsyncClient
from sqlmodel import Session
from attendtrack.models import Faculty, Group, UserRole
from .conftest import login, make_user


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client: AsyncClient, teacher):
    await login(client, "teacher1")
    assert (await client.get("/api/admin/groups")).status_code == 403
    # teachers may read the user list
    assert (await client.get("/api/admin/users")).status_code == 200


@pytest.mark.asyncio
async def test_admin_creates_teacher(client: AsyncClient, admin, department):
    await login(client, "admin1")
    response = await client.post(
        "/api/admin/users",
        json={
            "username": "prof",
            "password": "secret1",
            "firstName": "Анна",
            "lastName": "Смирнова",
            "role": "teacher",
            "departmentId": department.id,
            "groupId": 5,
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["role"] == "teacher"
    assert body["departmentId"] == department.id
    assert body["groupId"] is None

    listed = await client.get("/api/admin/users", params={"role": "teacher"})
    assert [u["username"] for u in listed.json()] == ["prof"]


@pytest.mark.asyncio
async def test_admin_register_teacher_through_auth(client: AsyncClient, admin):
    await login(client, "admin1")
    response = await client.post(
        "/api/auth/register",
        json={"username": "prof2", "password": "secret1", "firstName": "A", "lastName": "B", "role": "teacher"},
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_admin_updates_user(client: AsyncClient, admin, student, other_group):
    await login(client, "admin1")
    response = await client.put(f"/api/admin/users/{student.id}", json={"groupId": other_group.id})
    assert response.status_code == 200
    assert response.json()["groupId"] == other_group.id

    missing = await client.put(f"/api/admin/users/{student.id}", json={"groupId": 9999})
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_admin_update_null_role_keeps_group(client: AsyncClient, admin, student, group):
    await login(client, "admin1")
    response = await client.put(f"/api/admin/users/{student.id}", json={"role": None})
    assert response.status_code == 400

    body = (await client.get(f"/api/admin/users/{student.id}")).json()
    assert body["role"] == "student"
    assert body["groupId"] == group.id


@pytest.mark.asyncio
async def test_admin_update_duplicate_username(client: AsyncClient, session: Session, admin, student):
    make_user(session, "student2")
    await login(client, "admin1")
    response = await client.put(f"/api/admin/users/{student.id}", json={"username": "student2"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_user_rules(client: AsyncClient, session: Session, admin, teacher, class_session):
    plain = make_user(session, "plain")
    await login(client, "admin1")

    assert (await client.delete(f"/api/admin/users/{admin.id}")).status_code == 400
    assert (await client.delete(f"/api/admin/users/{teacher.id}")).status_code == 400
    assert (await client.delete(f"/api/admin/users/{plain.id}")).status_code == 200
    assert (await client.get(f"/api/admin/users/{plain.id}")).status_code == 404


@pytest.mark.asyncio
async def test_group_crud(client: AsyncClient, session: Session, admin):
    faculty = Faculty(name="ФИТ")
    session.add(faculty)
    session.commit()
    session.refresh(faculty)

    await login(client, "admin1")
    created = await client.post("/api/admin/groups", json={"name": "ИВТ-31", "facultyId": faculty.id})
    assert created.status_code == 201
    group_id = created.json()["id"]
    assert created.json()["facultyId"] == faculty.id

    renamed = await client.patch(f"/api/admin/groups/{group_id}", json={"name": "ИВТ-32"})
    assert renamed.json()["name"] == "ИВТ-32"

    public = await client.get("/api/groups")
    assert [g["name"] for g in public.json()] == ["ИВТ-32"]

    # the faculty is referenced by the group now
    assert (await client.delete(f"/api/admin/faculties/{faculty.id}")).status_code == 400
    assert (await client.delete(f"/api/admin/groups/{group_id}")).status_code == 200
    assert (await client.delete(f"/api/admin/faculties/{faculty.id}")).status_code == 200
    assert (await client.delete(f"/api/admin/groups/{group_id}")).status_code == 404


@pytest.mark.asyncio
async def test_group_with_students_cannot_be_deleted(client: AsyncClient, admin, student, group):
    await login(client, "admin1")
    response = await client.delete(f"/api/admin/groups/{group.id}")
    assert response.status_code == 400
    assert "referenced" in response.json()["message"]


@pytest.mark.asyncio
async def test_unknown_faculty_reference(client: AsyncClient, admin):
    await login(client, "admin1")
    response = await client.post("/api/admin/departments", json={"name": "Кафедра", "facultyId": 42})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_subjects_and_departments_need_login(client: AsyncClient, subject, student):
    assert (await client.get("/api/subjects")).status_code == 401
    await login(client, "student1")
    response = await client.get("/api/subjects")
    assert [s["name"] for s in response.json()] == [subject.name]
    assert (await client.get("/api/departments")).status_code == 200


@pytest.mark.asyncio
async def test_admin_lists_classes_and_attendance(client: AsyncClient, admin, class_session):
    await login(client, "admin1")
    classes = await client.get("/api/admin/classes")
    assert [c["id"] for c in classes.json()] == [class_session.id]
    assert classes.json()[0]["qrCode"] == "token-abc"
    assert classes.json()[0]["subjectName"] == "Базы данных"
    attendance = await client.get("/api/admin/attendance")
    assert attendance.json() == []


@pytest.mark.asyncio
async def test_admin_creates_class_for_teacher(client: AsyncClient, admin, teacher, subject, group):
    await login(client, "admin1")
    response = await client.post(
        "/api/teacher/classes",
        json={
            "subjectId": subject.id,
            "groupId": group.id,
            "classroom": "B-7",
            "startTime": "2024-03-04T09:00:00",
            "endTime": "2024-03-04T10:00:00",
            "teacherId": teacher.id,
        },
    )
    assert response.status_code == 201
    assert response.json()["teacherId"] == teacher.id
    assert response.json()["date"] == "2024-03-04"


@pytest.mark.asyncio
async def test_teacher_cannot_create_for_others(client: AsyncClient, session: Session, teacher, subject, group):
    other = make_user(session, "teacher2", UserRole.TEACHER)
    await login(client, "teacher1")
    response = await client.post(
        "/api/teacher/classes",
        json={
            "subjectId": subject.id,
            "groupId": group.id,
            "classroom": "B-7",
            "startTime": "2024-03-04T09:00:00",
            "endTime": "2024-03-04T08:00:00",
            "teacherId": other.id,
        },
    )
    assert response.status_code == 403
