# app/core/capabilities.py
# Authorization as data: (account, tutor profile) -> capability set
#
# Pure function -- no DB access, no request state. dependencies.py loads the
# records and composes this into route guards; services call it directly when
# a rule depends on who is acting.

from typing import FrozenSet, Optional

from app.models.tutor import Tutor
from app.models.user import User

POST_TUITION = "post_tuition"     # create / manage own tuitions
APPLY = "apply"                   # bid on open tuitions
ADMIN = "admin"                   # review tutor profiles


def capabilities_for(user: Optional[User], tutor: Optional[Tutor] = None) -> FrozenSet[str]:
    """
    Compute what an account may do.

    - Inactive or missing accounts get nothing.
    - Students can post tuitions.
    - Tutors can apply only while their profile is approved; a tutor whose
      profile was rejected keeps the account but loses APPLY.
    - Admins can review tutor profiles.
    """
    if user is None or not user.is_active:
        return frozenset()

    caps = set()
    if user.role == "student":
        caps.add(POST_TUITION)
    elif user.role == "admin":
        caps.add(ADMIN)

    if (
        tutor is not None
        and tutor.status == "approved"
        and tutor.user_id == user.id
    ):
        caps.add(APPLY)

    return frozenset(caps)
