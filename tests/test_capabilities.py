import unittest
import uuid

from app.core.capabilities import ADMIN, APPLY, POST_TUITION, capabilities_for
from app.models.tutor import Tutor
from app.models.user import User


def _user(role="student", is_active=True):
    return User(id=uuid.uuid4(), email=f"{role}@example.com", role=role, is_active=is_active)


def _tutor(user, status="approved"):
    return Tutor(id=uuid.uuid4(), user_id=user.id, email=user.email, status=status)


class CapabilitiesTests(unittest.TestCase):
    def test_student_can_post(self):
        self.assertEqual(capabilities_for(_user()), frozenset({POST_TUITION}))

    def test_approved_tutor_can_apply_but_not_post(self):
        user = _user("tutor")
        self.assertEqual(capabilities_for(user, _tutor(user)), frozenset({APPLY}))

    def test_pending_or_rejected_tutor_cannot_apply(self):
        user = _user("tutor")
        for status in ("pending", "rejected"):
            self.assertNotIn(APPLY, capabilities_for(user, _tutor(user, status)))

    def test_tutor_profile_of_someone_else_grants_nothing(self):
        user = _user("tutor")
        other = _user("tutor")
        self.assertNotIn(APPLY, capabilities_for(user, _tutor(other)))

    def test_admin_reviews_profiles(self):
        caps = capabilities_for(_user("admin"))
        self.assertIn(ADMIN, caps)
        self.assertNotIn(POST_TUITION, caps)

    def test_inactive_or_missing_account_has_nothing(self):
        self.assertEqual(capabilities_for(None), frozenset())
        user = _user("admin", is_active=False)
        self.assertEqual(capabilities_for(user, _tutor(user)), frozenset())
