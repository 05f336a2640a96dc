from __future__ import annotations

from typing import Optional, Type, TypeVar

from sqlalchemy import func, inspect
from sqlmodel import Session, SQLModel, select

from ..exceptions import NotFoundError, ValidationError

ModelT = TypeVar("ModelT", bound=SQLModel)


def model_label(model: type) -> str:
    """Human label for a mapped model, e.g. ``ClassSession`` -> ``Class session``."""
    name = model.__name__
    words = []
    for i, ch in enumerate(name):
        if ch.isupper() and i:
            words.append(" ")
        words.append(ch.lower() if i else ch)
    return "".join(words)


def get_or_404(session: Session, model: Type[ModelT], ident: int) -> ModelT:
    """Return the row with primary key ``ident`` or raise ``NotFoundError``."""
    instance = session.get(model, ident)
    if instance is None:
        raise NotFoundError(f"{model_label(model)} not found")
    return instance


def require_reference(session: Session, model: Type[ModelT], ident: Optional[int]) -> Optional[ModelT]:
    """Validate a foreign key taken from a request body.

    Missing references are the caller's input error, so they raise
    ``ValidationError`` rather than ``NotFoundError``.
    """
    if ident is None:
        return None
    instance = session.get(model, ident)
    if instance is None:
        raise ValidationError(f"{model_label(model)} {ident} does not exist")
    return instance


def count_where(session: Session, model: type, *criteria) -> int:
    pk = inspect(model).primary_key[0]
    return int(session.exec(select(func.count(pk)).where(*criteria)).one())
