"""Random request bodies for the GoRest user suite."""
from __future__ import annotations

from typing import Dict, Optional

from faker import Faker

_faker = Faker()

GENDERS = ("male", "female")
STATUSES = ("active", "inactive")


def random_user(status: Optional[str] = None) -> Dict[str, str]:
    """GoRest user payload with a unique e-mail address."""
    return {
        "name": _faker.name(),
        "gender": _faker.random_element(GENDERS),
        "email": _faker.unique.email(),
        "status": status or _faker.random_element(STATUSES),
    }
