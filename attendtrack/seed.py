import logging
from sqlmodel import Session, select
from .models import Department, Faculty, Group, Subject, User, UserRole
from .security import hash_password

log = logging.getLogger(__name__)

DEMO_ACCOUNTS = (
    ("student_demo", "demo123", UserRole.STUDENT, "Студент", "Демо"),
    ("teacher_demo", "demo123", UserRole.TEACHER, "Преподаватель", "Демо"),
    ("admin_demo", "admin123", UserRole.ADMIN, "Администратор", "Демо"),
)


def _get_or_create(session: Session, model, **fields):
    instance = session.exec(select(model).filter_by(**fields)).first()
    if instance is None:
        instance = model(**fields)
        session.add(instance)
        session.flush()
    return instance


def seed_demo_accounts(session: Session) -> list[User]:
    """Create the demo directory rows and accounts; existing ones are left untouched."""
    faculty = _get_or_create(session, Faculty, name="Демо факультет")
    group = _get_or_create(session, Group, name="ДЕМО-101", faculty_id=faculty.id)
    department = _get_or_create(session, Department, name="Демо кафедра", faculty_id=faculty.id)
    _get_or_create(session, Subject, name="Демо предмет")

    users = []
    for username, password, role, first_name, last_name in DEMO_ACCOUNTS:
        user = session.exec(select(User).where(User.username == username)).first()
        if user is None:
            user = User(
                username=username,
                password_hash=hash_password(password),
                role=role,
                first_name=first_name,
                last_name=last_name,
                group_id=group.id if role == UserRole.STUDENT else None,
                department_id=None if role == UserRole.STUDENT else department.id,
            )
            session.add(user)
            log.info("Seeded demo account %s", username)
        users.append(user)
    session.commit()
    return users
