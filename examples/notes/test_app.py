"""Tests for the notes example: auth guards, 404/403 translation, redirect-back."""

import pytest

from perch.testing import TestClient


@pytest.fixture(autouse=True)
def notes_db(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Point the app at a throwaway database file before it is loaded."""
    monkeypatch.setenv("PERCH_NOTES_DB", str(tmp_path / "notes.db"))


async def _login(client: TestClient, email: str = "alice@example.com") -> None:
    response = await client.post("/session", form={"email": email})
    assert response.status == 303
    assert response.location == "/"


class TestGuards:
    async def test_home_as_guest(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/")
            assert response.status == 200
            assert "Hello, guest." in response.text

    async def test_notes_require_login(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/notes")
            assert response.status == 303
            assert response.location == "/"

    async def test_login_page_is_for_guests_only(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            response = await client.get("/login")
            assert response.status == 303
            assert response.location == "/"

    async def test_logout_flushes_session(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            response = await client.post("/session", form={"_method": "DELETE"})
            assert response.status == 303

            response = await client.get("/notes")
            assert response.status == 303
            assert response.location == "/"


class TestLogin:
    async def test_login_greets_user(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            response = await client.get("/")
            assert "Hello, alice@example.com." in response.text

    async def test_unknown_email_redirects_back_with_error(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await client.get("/login")
            response = await client.post("/session", form={"email": "nobody@example.com"})
            assert response.status == 303
            assert response.location == "/login"

            page = await client.get("/login")
            assert "No matching account found for that email address." in page.text
            assert 'value="nobody@example.com"' in page.text

    async def test_malformed_email(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await client.get("/login")
            page = await client.post("/session", form={"email": "nope"}, follow=True)
            assert page.status == 200
            assert "Must be a valid email address" in page.text


class TestShowNote:
    async def test_owner_sees_note(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            response = await client.get("/notes/1")
            assert response.status == 200
            assert "first note" in response.text

    async def test_index_lists_only_own_notes(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            response = await client.get("/notes")
            assert "first note" in response.text
            assert "second note" in response.text
            assert "only note" not in response.text

    async def test_missing_note_is_404(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            response = await client.get("/notes/999")
            assert response.status == 404
            assert "Page Not Found" in response.text

    async def test_someone_elses_note_is_403(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client, "bob@example.com")
            response = await client.get("/notes/1")
            assert response.status == 403
            assert "You are not authorized" in response.text
            assert example_app.router.previous_path() == "/notes/1"

    async def test_unknown_route_is_404(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/nowhere")
            assert response.status == 404


class TestStoreNote:
    async def test_valid_note_is_stored(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            response = await client.post("/notes", form={"body": "Buy milk"})
            assert response.status == 303
            assert response.location == "/notes"

            page = await client.get("/notes")
            assert "Buy milk" in page.text

    async def test_empty_body_redirects_back(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            await client.get("/notes/create")
            response = await client.post("/notes", form={"body": "   "})
            assert response.status == 303
            assert response.location == "/notes/create"

            page = await client.get("/notes/create")
            assert "A body of no more than 1,000 characters is required." in page.text

    async def test_long_body_keeps_old_input(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            await client.get("/notes/create")
            body = "x" * 1001
            page = await client.post("/notes", form={"body": body}, follow=True)
            assert page.status == 200
            assert "A body of no more than 1,000 characters is required." in page.text
            assert body in page.text

    async def test_redirect_back_is_per_user(self, example_app) -> None:
        async with TestClient(example_app) as alice:
            bob = TestClient(example_app)
            await _login(alice)
            await _login(bob, "bob@example.com")

            await alice.get("/notes/create")
            await bob.get("/notes")

            response = await alice.post("/notes", form={"body": ""})
            assert response.status == 303
            assert response.location == "/notes/create"

    async def test_errors_are_gone_after_one_request(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            await client.get("/notes/create")
            await client.post("/notes", form={"body": ""}, follow=True)

            page = await client.get("/notes/create")
            assert "A body of no more than" not in page.text


class TestDestroyNote:
    async def test_owner_deletes_note(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client)
            response = await client.post("/notes/1", form={"_method": "DELETE"})
            assert response.status == 303
            assert response.location == "/notes"

            response = await client.get("/notes/1")
            assert response.status == 404

    async def test_cannot_delete_someone_elses_note(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await _login(client, "bob@example.com")
            response = await client.delete("/notes/1")
            assert response.status == 403
