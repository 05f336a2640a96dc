from __future__ import annotations

import logging
from typing import Any, Type

from sqlmodel import Session, SQLModel, select

from ..exceptions import ValidationError
from ..models import ClassSession, Department, Faculty, Group, Subject, User
from .orm_utils import count_where, get_or_404, model_label, require_reference

log = logging.getLogger(__name__)

# model -> (referencing model, foreign key column name) pairs that block deletion
REFERENCES: dict[type, tuple[tuple[type, str], ...]] = {
    Faculty: ((Group, "faculty_id"), (Department, "faculty_id")),
    Group: ((User, "group_id"), (ClassSession, "group_id")),
    Department: ((User, "department_id"),),
    Subject: ((ClassSession, "subject_id"),),
}

# models carrying an optional faculty_id
AFFILIATED = (Group, Department)


class DirectoryService:
    """CRUD for the flat reference tables: faculties, groups, departments, subjects."""

    def __init__(self, session: Session, model: Type[SQLModel]):
        if model not in REFERENCES:
            raise ValueError(f"{model!r} is not a directory model")
        self.session = session
        self.model = model

    def list_all(self) -> list[Any]:
        return list(self.session.exec(select(self.model).order_by(self.model.name)).all())

    def get(self, ident: int) -> Any:
        return get_or_404(self.session, self.model, ident)

    def _clean(self, changes: dict[str, Any]) -> dict[str, Any]:
        if self.model not in AFFILIATED:
            changes.pop("faculty_id", None)
        elif "faculty_id" in changes:
            require_reference(self.session, Faculty, changes["faculty_id"])
        return changes

    def create(self, changes: dict[str, Any]) -> Any:
        instance = self.model(**self._clean(dict(changes)))
        self.session.add(instance)
        self.session.commit()
        self.session.refresh(instance)
        log.info("%s %s created", model_label(self.model), instance.id)
        return instance

    def update(self, ident: int, changes: dict[str, Any]) -> Any:
        instance = self.get(ident)
        for key, value in self._clean(dict(changes)).items():
            setattr(instance, key, value)
        self.session.add(instance)
        self.session.commit()
        self.session.refresh(instance)
        return instance

    def delete(self, ident: int) -> None:
        instance = self.get(ident)
        label = model_label(self.model)
        for ref_model, column in REFERENCES[self.model]:
            if count_where(self.session, ref_model, getattr(ref_model, column) == ident):
                raise ValidationError(f"{label} is still referenced and cannot be deleted")
        self.session.delete(instance)
        self.session.commit()
        log.info("%s %s deleted", label, ident)
