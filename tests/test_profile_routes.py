from datetime import date

import pytest
from PIL import Image

from conftest import login, make_image_bytes
from company_guide.core.config import settings
from company_guide.repositories.profile_repo import ProfileRepository


async def fail_write(self, *args, **kwargs):
    raise RuntimeError("database unavailable")


PROFILE_DATA = {
    "name": "Acme",
    "description": "Web development",
    "city": "Utrecht",
    "founded_at": "1999",
    "hourly_rate": "1 234,56",
}


@pytest.fixture
def owner(client, make_user):
    user = make_user(email="owner@example.com")
    login(client, user)
    return user


# --- store ---
def test_store_creates_profile_with_derived_fields(client, owner, fetch_profile):
    response = client.post("/profile", data=PROFILE_DATA, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/profile/mine"
    profile = fetch_profile("acme")
    assert profile.description == "Web development"
    assert profile.founded_at == date(1999, 1, 1)
    assert profile.hourly_rate == pytest.approx(1234.56)
    assert profile.logo is None


def test_store_with_empty_optional_fields(client, owner, fetch_profile):
    client.post("/profile", data={"name": "Acme", "founded_at": "", "hourly_rate": ""})

    profile = fetch_profile("acme")
    assert profile.founded_at is None
    assert profile.hourly_rate is None


def test_store_shows_success_message(client, owner):
    response = client.post("/profile", data=PROFILE_DATA)

    assert response.url.path == "/profile/mine"
    assert "Profile 已新增" in response.text
    assert "Acme" in response.text


def test_first_profile_is_primary(client, owner, fetch_memberships):
    client.post("/profile", data={"name": "Acme"})
    client.post("/profile", data={"name": "Beta"})
    client.post("/profile", data={"name": "Gamma"})

    assert fetch_memberships(owner.user_id) == {"acme": True, "beta": False, "gamma": False}


def test_store_with_logo(client, owner, logo_dir, fetch_profile):
    client.post(
        "/profile",
        data={"name": "Acme"},
        files={"logo": ("logo.png", make_image_bytes(), "image/png")}
    )

    profile = fetch_profile("acme")
    assert profile.logo.endswith(".png")
    with Image.open(logo_dir / profile.logo) as image:
        assert image.size == (400, 400)


def test_failed_store_removes_uploaded_logo(client, owner, logo_dir, fetch_profile, monkeypatch):
    monkeypatch.setattr(ProfileRepository, "create_profile_for_user", fail_write)

    with pytest.raises(RuntimeError):
        client.post(
            "/profile",
            data={"name": "Acme"},
            files={"logo": ("logo.png", make_image_bytes(), "image/png")}
        )

    assert fetch_profile("acme") is None
    assert list(logo_dir.iterdir()) == []


def test_store_with_broken_logo_is_silent_by_default(client, owner, fetch_profile):
    response = client.post(
        "/profile",
        data={"name": "Acme"},
        files={"logo": ("logo.png", b"garbage", "image/png")}
    )

    assert "Profile 已新增" in response.text
    assert "Logo 上傳失敗" not in response.text
    assert fetch_profile("acme").logo is None


def test_store_with_broken_logo_can_notify(client, owner, monkeypatch):
    monkeypatch.setattr(settings, "NOTIFY_LOGO_UPLOAD_FAILURE", True)

    response = client.post(
        "/profile",
        data={"name": "Acme"},
        files={"logo": ("logo.png", b"garbage", "image/png")}
    )

    assert "Logo 上傳失敗" in response.text


def test_store_rejects_invalid_form(client, owner, fetch_profile):
    response = client.post("/profile", data={"name": "", "founded_at": "99"}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/profile/create"
    assert fetch_profile("") is None


@pytest.mark.parametrize("field,value", [
    ("founded_at", "0000"),
    ("hourly_rate", "9" * 400),
])
def test_store_rejects_values_the_parser_cannot_store(client, owner, fetch_profile, field, value):
    response = client.post("/profile", data={"name": "Acme", field: value}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/profile/create"
    assert fetch_profile("acme") is None


def test_store_generates_unique_slugs(client, owner, fetch_profile):
    client.post("/profile", data={"name": "Acme"})
    client.post("/profile", data={"name": "ACME"})
    client.post("/profile", data={"name": "Edit"})

    assert fetch_profile("acme") is not None
    assert fetch_profile("acme-2").name == "ACME"
    assert fetch_profile("edit-2").name == "Edit"


# --- show / mine / create ---
def test_show_unknown_profile_is_404(client):
    assert client.get("/profile/does-not-exist").status_code == 404


def test_my_profiles_lists_only_own(client, owner, make_user, make_profile):
    other = make_user(email="other@example.com")
    make_profile(owner, name="Mine One", primary=True)
    make_profile(owner, name="Mine Two")
    make_profile(other, name="Someone Else")

    response = client.get("/profile/mine")

    assert "Mine One" in response.text
    assert "Mine Two" in response.text
    assert "Someone Else" not in response.text


def test_create_shows_blank_form(client, owner):
    response = client.get("/profile/create")
    assert response.status_code == 200
    assert 'name="name" value=""' in response.text


# --- edit / update ---
def test_owner_can_edit(client, owner, make_profile):
    make_profile(owner, name="Acme")

    response = client.get("/profile/acme/edit")

    assert response.status_code == 200
    assert 'value="Acme"' in response.text


def test_non_owner_edit_redirects_with_error(client, owner, make_user, make_profile):
    make_profile(make_user(email="other@example.com"), name="Acme")

    response = client.get("/profile/acme/edit")

    assert response.url.path == "/profile/mine"
    assert "你沒有權限存取此 Profile" in response.text


def test_owner_can_update(client, owner, make_profile, fetch_profile):
    make_profile(owner, name="Acme", description="old", hourly_rate=10.0)

    response = client.put(
        "/profile/acme",
        data={"name": "Acme Renamed", "description": "new", "founded_at": "2001", "hourly_rate": "85,50"},
        follow_redirects=False
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/profile/mine"
    profile = fetch_profile("acme")
    assert profile.name == "Acme Renamed"
    assert profile.description == "new"
    assert profile.founded_at == date(2001, 1, 1)
    assert profile.hourly_rate == pytest.approx(85.5)


def test_update_through_method_override(client, owner, make_profile, fetch_profile):
    make_profile(owner, name="Acme")

    client.post("/profile/acme?_method=PUT", data={"name": "Acme", "city": "Gent"})

    assert fetch_profile("acme").city == "Gent"


def test_update_replaces_logo_and_deletes_old_file(client, owner, make_profile, logo_dir, fetch_profile):
    (logo_dir / "old.png").write_bytes(make_image_bytes())
    make_profile(owner, name="Acme", logo="old.png")

    client.put(
        "/profile/acme",
        data={"name": "Acme"},
        files={"logo": ("new.png", make_image_bytes(), "image/png")}
    )

    profile = fetch_profile("acme")
    assert profile.logo != "old.png"
    assert (logo_dir / profile.logo).is_file()
    assert not (logo_dir / "old.png").exists()


def test_update_without_logo_keeps_existing(client, owner, make_profile, logo_dir, fetch_profile):
    (logo_dir / "old.png").write_bytes(make_image_bytes())
    make_profile(owner, name="Acme", logo="old.png")

    client.put("/profile/acme", data={"name": "Acme"})

    assert fetch_profile("acme").logo == "old.png"
    assert (logo_dir / "old.png").is_file()


def test_update_with_broken_logo_keeps_old_file(client, owner, make_profile, logo_dir, fetch_profile):
    (logo_dir / "old.png").write_bytes(make_image_bytes())
    make_profile(owner, name="Acme", logo="old.png")

    client.put(
        "/profile/acme",
        data={"name": "Acme"},
        files={"logo": ("new.png", b"garbage", "image/png")}
    )

    assert fetch_profile("acme").logo == "old.png"
    assert (logo_dir / "old.png").is_file()


def test_failed_update_keeps_old_logo_and_drops_new_file(
    client, owner, make_profile, logo_dir, fetch_profile, monkeypatch
):
    (logo_dir / "old.png").write_bytes(make_image_bytes())
    make_profile(owner, name="Acme", logo="old.png")
    monkeypatch.setattr(ProfileRepository, "update_profile", fail_write)

    with pytest.raises(RuntimeError):
        client.put(
            "/profile/acme",
            data={"name": "Acme"},
            files={"logo": ("new.png", make_image_bytes(), "image/png")}
        )

    assert fetch_profile("acme").logo == "old.png"
    assert [p.name for p in logo_dir.iterdir()] == ["old.png"]


def test_non_owner_update_leaves_profile_unchanged(client, owner, make_user, make_profile, fetch_profile):
    make_profile(make_user(email="other@example.com"), name="Acme", description="original")

    response = client.put("/profile/acme", data={"name": "Hijacked", "description": "changed"})

    assert response.url.path == "/profile/mine"
    assert "你沒有權限存取此 Profile" in response.text
    profile = fetch_profile("acme")
    assert profile.name == "Acme"
    assert profile.description == "original"


def test_update_rejects_invalid_form(client, owner, make_profile, fetch_profile):
    make_profile(owner, name="Acme", hourly_rate=10.0)

    response = client.put("/profile/acme", data={"name": "Acme", "hourly_rate": "lots"}, follow_redirects=False)

    assert response.headers["location"] == "/profile/acme/edit"
    assert fetch_profile("acme").hourly_rate == pytest.approx(10.0)


# --- remove logo ---
def test_owner_can_remove_logo(client, owner, make_profile, logo_dir, fetch_profile):
    (logo_dir / "logo.png").write_bytes(make_image_bytes())
    make_profile(owner, name="Acme", logo="logo.png")

    response = client.post("/profile/acme/logo/remove", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/profile/acme/edit"
    assert fetch_profile("acme").logo is None
    assert not (logo_dir / "logo.png").exists()


def test_remove_logo_shows_message(client, owner, make_profile, logo_dir):
    (logo_dir / "logo.png").write_bytes(make_image_bytes())
    make_profile(owner, name="Acme", logo="logo.png")

    response = client.post("/profile/acme/logo/remove")

    assert response.url.path == "/profile/acme/edit"
    assert "Logo 已刪除" in response.text


def test_remove_logo_without_file_does_nothing(client, owner, make_profile, logo_dir, fetch_profile):
    make_profile(owner, name="Acme", logo="missing.png")

    response = client.post("/profile/acme/logo/remove")

    assert response.url.path == "/profile/acme/edit"
    assert "Logo 已刪除" not in response.text
    assert fetch_profile("acme").logo == "missing.png"


def test_non_owner_cannot_remove_logo(client, owner, make_user, make_profile, logo_dir, fetch_profile):
    (logo_dir / "logo.png").write_bytes(make_image_bytes())
    make_profile(make_user(email="other@example.com"), name="Acme", logo="logo.png")

    response = client.post("/profile/acme/logo/remove")

    assert response.url.path == "/profile/mine"
    assert fetch_profile("acme").logo == "logo.png"
    assert (logo_dir / "logo.png").is_file()


# --- destroy ---
def test_owner_can_destroy(client, owner, make_profile, fetch_profile, fetch_memberships):
    make_profile(owner, name="Acme", primary=True)

    response = client.delete("/profile/acme", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/profile/mine"
    assert fetch_profile("acme") is None
    assert fetch_memberships(owner.user_id) == {}


def test_destroy_through_method_override(client, owner, make_profile, fetch_profile):
    make_profile(owner, name="Acme")

    response = client.post("/profile/acme?_method=DELETE")

    assert "Profile 已刪除" in response.text
    assert fetch_profile("acme") is None


def test_destroy_leaves_logo_file_on_disk(client, owner, make_profile, logo_dir, fetch_profile):
    # 目前刪除 Profile 不會清除 logo 檔案
    (logo_dir / "logo.png").write_bytes(make_image_bytes())
    make_profile(owner, name="Acme", logo="logo.png")

    client.delete("/profile/acme")

    assert fetch_profile("acme") is None
    assert (logo_dir / "logo.png").is_file()


def test_non_owner_cannot_destroy(client, owner, make_user, make_profile, fetch_profile):
    make_profile(make_user(email="other@example.com"), name="Acme")

    response = client.delete("/profile/acme")

    assert "你沒有權限存取此 Profile" in response.text
    assert fetch_profile("acme") is not None
