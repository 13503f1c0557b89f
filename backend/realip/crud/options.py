from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from realip.models.options import Option


def get_option(db: Session, key: str) -> Option | None:
    return db.query(Option).filter(Option.key == key).first()


def get_option_value(db: Session, key: str) -> tuple[str, bool]:
    option = get_option(db, key)
    if option is None:
        return "", False
    return option.value or "", True


def upsert_option(db: Session, key: str, value: str) -> Option:
    option = get_option(db, key)
    if option is None:
        option = Option(key=key, value=value)
        db.add(option)
    else:
        option.value = value
    db.commit()
    db.refresh(option)
    return option


def insert_option_if_absent(db: Session, key: str, value: str) -> bool:
    """Insert ``key`` only when no row exists. Returns True when inserted."""
    if get_option(db, key) is not None:
        return False
    db.add(Option(key=key, value=value))
    try:
        db.commit()
    except IntegrityError:
        # Another process stored the key first.
        db.rollback()
        return False
    return True
