import asyncio

import pytest

from jdc_dashboard.data.profiles_repository import get_user_profile, list_user_profiles
from jdc_dashboard.models.domain import AppUser, UserProfile
from jdc_dashboard.services.errors import ProfileExistsError, ProfileNotFoundError
from jdc_dashboard.services.users import accessible_sectors, create_profile, require_admin, update_profile

from conftest import FakeStore


def _users():
    return FakeStore(
        {
            "users": [
                {"id": "u1", "email": "tech@jdc.fr", "role": "Technician", "secteurs": ["CHR", "Tabac"],
                 "displayName": "Tech"},
                {"id": "u0", "email": "admin@jdc.fr", "role": "Admin", "secteurs": "HACCP"},
            ]
        }
    )


def test_create_profile_uses_default_role_and_no_sectors():
    store = FakeStore()
    user = AppUser(uid="new", email=" new@jdc.fr ")

    profile = asyncio.run(create_profile(store, user, " Newcomer "))

    assert profile.role == "Technician"
    assert profile.sectors == []
    assert store.tables["users"] == [
        {"id": "new", "email": "new@jdc.fr", "role": "Technician", "secteurs": [], "displayName": "Newcomer"}
    ]


def test_create_profile_never_overwrites_an_existing_one():
    store = _users()

    with pytest.raises(ProfileExistsError):
        asyncio.run(create_profile(store, AppUser(uid="u0", email="admin@jdc.fr"), "Admin again"))

    profile = asyncio.run(get_user_profile(store, "u0"))
    assert profile.role == "Admin"
    assert profile.sectors == ["HACCP"]
    assert ("insert", "users") not in store.calls


@pytest.mark.parametrize(
    "user, display_name",
    [
        (AppUser(uid="x", email=None), "Name"),
        (AppUser(uid="", email="a@b.c"), "Name"),
        (AppUser(uid="x", email="a@b.c"), "   "),
    ],
)
def test_create_profile_requires_identity_fields(user, display_name):
    with pytest.raises(ValueError):
        asyncio.run(create_profile(FakeStore(), user, display_name))


def test_update_writes_only_changed_fields():
    store = _users()

    changes = asyncio.run(
        update_profile(store, "u1", display_name="Tech", role="Viewer", sectors=["Tabac", "CHR"])
    )

    assert changes == {"role": "Viewer"}
    assert ("update", "users") in store.calls
    profile = asyncio.run(get_user_profile(store, "u1"))
    assert profile.role == "Viewer"
    assert profile.sectors == ["CHR", "Tabac"]


def test_update_without_changes_issues_no_write():
    store = _users()

    changes = asyncio.run(update_profile(store, "u1", sectors=["Tabac", "CHR", "CHR"]))

    assert changes == {}
    assert ("update", "users") not in store.calls


def test_update_rejects_unknown_role_or_sector():
    with pytest.raises(ValueError):
        asyncio.run(update_profile(_users(), "u1", role="Overlord"))
    with pytest.raises(ValueError):
        asyncio.run(update_profile(_users(), "u1", sectors=["CHR", "Mars"]))


def test_update_unknown_uid():
    with pytest.raises(ProfileNotFoundError):
        asyncio.run(update_profile(_users(), "ghost", role="Viewer"))


def test_profiles_are_listed_by_email_and_accept_single_sector_strings():
    profiles = asyncio.run(list_user_profiles(_users()))

    assert [p.uid for p in profiles] == ["u0", "u1"]
    assert profiles[0].sectors == ["HACCP"]
    assert profiles[0].is_admin


def test_access_helpers():
    viewer = UserProfile(uid="v", email="v@jdc.fr", role="Viewer", sectors=["CHR", "CHR", "Kezia"])

    assert accessible_sectors(None) == []
    assert accessible_sectors(viewer) == ["CHR", "Kezia"]
    with pytest.raises(PermissionError):
        require_admin(viewer)
    with pytest.raises(PermissionError):
        require_admin(None)
