from sqlalchemy import or_
from sqlalchemy.orm import Session
from ..db import models
from . import security


def authenticate_user(db: Session, login: str, password: str) -> models.User | None:
    login = login.strip()
    user = (
        db.query(models.User)
        .filter(or_(models.User.username == login, models.User.email == login.lower()))
        .first()
    )
    if not user:
        return None
    if not security.verify_password(password, user.password_hash):
        return None
    return user
