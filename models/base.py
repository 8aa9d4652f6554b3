from enum import Enum

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum values ("pending") instead of member names ("PENDING")."""
    return [member.value for member in enum_cls]
