import pytest

from bestiary.errors import DuplicateNameError, InvalidFieldError, MissingFieldsError, NoValidFieldsError
from bestiary.services import user_service
from tests.factories import PASSWORD, make_user


def test_create_user_normalizes_email_and_hashes_password():
    user = make_user(email="  GM@Example.com ")
    assert user.email == "gm@example.com"
    assert user.password != PASSWORD
    assert user.check_password(PASSWORD)
    assert "password" not in user.to_dict()


def test_create_user_validation():
    with pytest.raises(MissingFieldsError) as exc:
        user_service.create_user({"email": "gm@example.com"})
    assert exc.value.fields == ["password"]
    with pytest.raises(InvalidFieldError) as exc:
        make_user(password="password")
    assert exc.value.field == "password"
    with pytest.raises(InvalidFieldError):
        make_user(email="not-an-email")


def test_duplicate_email_ignores_case():
    make_user()
    with pytest.raises(DuplicateNameError) as exc:
        make_user(email="GM@example.com")
    assert str(exc.value) == "User creation failed, a user with the given email already exists"


def test_authenticate():
    user = make_user()
    assert user_service.authenticate("GM@example.com", PASSWORD).id == user.id
    assert user_service.authenticate("gm@example.com", "Wr0ng&Board") is None
    assert user_service.authenticate("nobody@example.com", PASSWORD) is None
    assert user_service.authenticate("", "") is None


def test_change_password():
    user = make_user()
    with pytest.raises(InvalidFieldError) as exc:
        user_service.change_password(user.id, "Wr0ng&Board", "N3w&Password")
    assert "current password is incorrect" in str(exc.value)
    with pytest.raises(InvalidFieldError):
        user_service.change_password(user.id, PASSWORD, "weak")
    user_service.change_password(user.id, PASSWORD, "N3w&Password")
    assert user_service.authenticate(user.email, "N3w&Password") is not None
    assert user_service.authenticate(user.email, PASSWORD) is None


def test_update_email_only():
    user = make_user()
    make_user(email="player@example.com")
    assert user_service.update_user(user.id, {"email": "DM@example.com"}).email == "dm@example.com"
    with pytest.raises(NoValidFieldsError):
        user_service.update_user(user.id, {"password": "N3w&Password"})
    with pytest.raises(DuplicateNameError):
        user_service.update_user(user.id, {"email": "player@example.com"})


def test_search_and_delete_users():
    user = make_user()
    assert [u.id for u in user_service.search_users(email="GM@example.com")] == [user.id]
    assert user_service.delete_user(user.id) is True
    assert user_service.get_user(user.id) is None
