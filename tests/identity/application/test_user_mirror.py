from identity.user import User, find_user_by_email, sync_user
from shared.database import get_database


class TestFindUserByEmail:
    def test_case_insensitive(self, make_user):
        user = make_user(email="Shopper@Example.com")

        with get_database().unit_of_work() as session:
            assert find_user_by_email(session, " shopper@example.COM ").id == user.id

    def test_blank_email(self, make_user):
        make_user()

        with get_database().unit_of_work() as session:
            assert find_user_by_email(session, "  ") is None


class TestSyncUser:
    def test_creates_mirror(self):
        with get_database().unit_of_work() as session:
            sync_user(session, "user-1", "New@Example.com")

        with get_database().unit_of_work() as session:
            assert session.get(User, "user-1").email == "new@example.com"

    def test_updates_email(self, make_user):
        user = make_user(email="old@example.com")

        with get_database().unit_of_work() as session:
            sync_user(session, user.id, "new@example.com")

        with get_database().unit_of_work() as session:
            assert session.get(User, user.id).email == "new@example.com"

    def test_email_of_another_user_is_left_alone(self, make_user):
        owner = make_user(email="taken@example.com")

        with get_database().unit_of_work() as session:
            assert sync_user(session, "user-2", "taken@example.com") is None

        with get_database().unit_of_work() as session:
            assert session.get(User, "user-2") is None
            assert session.get(User, owner.id).email == "taken@example.com"

    def test_without_email_returns_existing(self, make_user):
        user = make_user()

        with get_database().unit_of_work() as session:
            assert sync_user(session, user.id, None).id == user.id
            assert sync_user(session, "unknown", None) is None
