from pathlib import Path

from fastapi.testclient import TestClient

from learnhub.core.errors import PersistenceError
from learnhub.main import create_app
from learnhub.services import submissions as submission_repo
from learnhub.services import users

from conftest import STRONG_PASSWORD, login, make_settings, signup


def _upload(client, name="hw1.pdf", content=b"%PDF-1.4 homework", title="Homework 1", **fields):
    return client.post(
        "/api/submit",
        files={"file": (name, content, "application/octet-stream")},
        data={"title": title, **fields},
    )


def _stored_files(settings):
    directory = Path(settings.submissions_dir)
    return sorted(p.name for p in directory.iterdir()) if directory.exists() else []


# ---------- pages & health ----------

def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_public_pages_render(client):
    for path in ("/", "/signup", "/login"):
        response = client.get(path)
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]


def test_dashboard_redirects_anonymous_to_login(client):
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


# ---------- signup / login / logout ----------

def test_signup_creates_account_and_session(client):
    response = signup(client)
    assert response.status_code == 201
    assert response.json() == {"success": True, "message": "Account created."}
    assert "learnhub_session" in response.cookies

    dashboard = client.get("/dashboard")
    assert dashboard.status_code == 200
    assert "alice" in dashboard.text


def test_duplicate_signup_redirects_to_login(client):
    signup(client)
    client.cookies.clear()

    by_username = signup(client, email="someone-else@x.com")
    by_email = signup(client, username="alice2")

    assert by_username.status_code == by_email.status_code == 200
    assert by_username.json() == by_email.json() == {"redirect": "/login"}
    assert "learnhub_session" not in by_username.cookies

    # the first account still logs in with its own password
    assert login(client).status_code == 200


def test_signup_weak_password(client):
    response = signup(client, password="abcdefgh")
    assert response.status_code == 400
    assert response.json() == {"error": "Password must contain at least one uppercase letter."}


def test_signup_missing_fields(client):
    response = client.post("/signup", json={"username": "alice"})
    assert response.status_code == 400
    assert response.json() == {"error": "Please fill all required fields."}


def test_login_rejects_wrong_password_and_unknown_user_alike(client):
    signup(client)
    client.cookies.clear()

    wrong = login(client, password="Wrong-pass1!")
    unknown = login(client, username="nobody", password="Wrong-pass1!")

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"error": "Invalid credentials."}
    assert "learnhub_session" not in wrong.cookies


def test_login_with_email(client):
    signup(client)
    client.cookies.clear()

    response = login(client, username="alice@x.com")
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get("/api/submissions").status_code == 200


def test_login_missing_credentials(client):
    response = client.post("/login", json={"username": "alice"})
    assert response.status_code == 400


def test_logout_ends_session(client):
    signup(client)
    response = client.post("/logout", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert "learnhub_session" not in client.cookies
    assert client.get("/api/submissions").status_code == 401


def test_forged_cookie_is_ignored(client):
    client.cookies.set("learnhub_session", "MTox.deadbeef")
    assert client.get("/api/submissions").status_code == 401


def test_password_check(client):
    weak = client.post("/api/password-check", json={"password": "short"})
    assert weak.json() == {"valid": False, "message": "Password must be at least 8 characters long."}

    strong = client.post("/api/password-check", json={"password": STRONG_PASSWORD})
    assert strong.json() == {"valid": True, "message": None}


# ---------- progress ----------

def test_progress_requires_session(client):
    assert client.post("/api/progress", json={"items": []}).status_code == 401
    assert client.get("/api/progress/summary").status_code == 401
    assert client.get("/api/progress").json() == {"progress": []}


def test_progress_round_trip_and_summary(client):
    signup(client)
    first = {"items": [{"id": "q1", "correct": True}, {"id": "q2", "correct": False}]}
    second = {
        "items": [{"id": "q3", "correct": True}, {"id": "q4", "correct": True}, {"id": "q5", "correct": False}],
        "meta": {"tags": [["a", "b"], {"deep": [1, None]}]},
    }
    assert client.post("/api/progress", json=first).json() == {"saved": True}
    assert client.post("/api/progress", json=second).json() == {"saved": True}

    progress = client.get("/api/progress").json()["progress"]
    assert len(progress) == 2
    for entry in progress:
        assert "at" in entry
    by_first_item = {entry["items"][0]["id"]: entry for entry in progress}
    assert by_first_item["q3"]["meta"] == second["meta"]
    assert by_first_item["q1"]["items"] == first["items"]

    summary = client.get("/api/progress/summary").json()
    assert summary["entries"] == 2
    assert summary["totalAttempts"] == 5
    assert summary["correct"] == 3
    assert summary["submissions"] == 0
    assert len(summary["recent"]) == 5


def test_progress_rejects_non_object(client):
    signup(client)
    response = client.post("/api/progress", json=[1, 2, 3])
    assert response.status_code == 400
    assert response.json() == {"error": "Progress payload must be a JSON object."}


def test_progress_is_per_user(client):
    signup(client)
    client.post("/api/progress", json={"items": [{"correct": True}]})
    client.cookies.clear()

    signup(client, username="bob", email="bob@x.com")
    assert client.get("/api/progress").json() == {"progress": []}
    assert client.get("/api/progress/summary").json()["totalAttempts"] == 0


# ---------- submissions ----------

def test_submit_requires_session(client, settings):
    assert _upload(client).status_code == 401
    assert client.get("/api/submissions").status_code == 401
    assert _stored_files(settings) == []


def test_submit_and_list(client, settings):
    signup(client)
    response = _upload(client)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["submission"]["title"] == "Homework 1"

    [row] = client.get("/api/submissions").json()["submissions"]
    assert row["id"] == body["submission"]["id"]
    assert row["title"] == "Homework 1"
    assert row["filename"] == "hw1.pdf"
    assert row["status"] == "pending"
    assert row["type"] == "assignment"
    assert row["submittedAt"]

    stored = Path(settings.submissions_dir) / row["storedFilename"]
    assert stored.read_bytes() == b"%PDF-1.4 homework"


def test_submit_optional_fields(client):
    signup(client)
    _upload(client, type="project", notes="  late, sorry  ")
    [row] = client.get("/api/submissions").json()["submissions"]
    assert row["type"] == "project"
    assert row["notes"] == "late, sorry"


def test_submit_rejects_bad_extension(client, settings):
    signup(client)
    response = _upload(client, name="payload.exe")
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid file type.")
    assert _stored_files(settings) == []


def test_submit_requires_title(client, settings):
    signup(client)
    response = _upload(client, title="   ")
    assert response.status_code == 400
    assert response.json() == {"error": "Title is required."}
    assert _stored_files(settings) == []


def test_submit_requires_file(client):
    signup(client)
    response = client.post("/api/submit", data={"title": "HW"})
    assert response.status_code == 400
    assert response.json() == {"error": "No file uploaded."}


def test_submit_sanitizes_stored_name(client):
    signup(client)
    _upload(client, name="../../my report (final).pdf")
    [row] = client.get("/api/submissions").json()["submissions"]
    assert "/" not in row["storedFilename"]
    assert row["storedFilename"].endswith("my_report__final_.pdf")


def test_submit_over_size_limit(tmp_path):
    settings = make_settings(tmp_path, max_upload_bytes=16)
    with TestClient(create_app(settings)) as client:
        signup(client)
        response = _upload(client, content=b"x" * 17)
        assert response.status_code == 400
        assert "exceeds" in response.json()["error"]
        assert _stored_files(settings) == []

        assert _upload(client, content=b"x" * 16).status_code == 200


def test_failed_metadata_write_removes_file(client, settings, monkeypatch):
    signup(client)

    def fail(*args, **kwargs):
        raise PersistenceError("Constraint violation (create submission).")

    monkeypatch.setattr(submission_repo, "create_submission", fail)
    response = _upload(client)
    assert response.status_code == 500
    assert response.json() == {"error": "Server error."}
    assert _stored_files(settings) == []


def test_submissions_are_per_user(client):
    signup(client)
    _upload(client)
    client.cookies.clear()

    signup(client, username="bob", email="bob@x.com")
    assert client.get("/api/submissions").json() == {"submissions": []}


def test_signup_race_on_same_identity_redirects(client, monkeypatch):
    signup(client)
    client.cookies.clear()
    monkeypatch.setattr(users, "find_existing_identity", lambda *args: None)

    response = signup(client, email="other@x.com")
    assert response.status_code == 200
    assert response.json() == {"redirect": "/login"}
    assert "learnhub_session" not in response.cookies


def test_dashboard_upload_form_posts_with_fetch(client):
    signup(client)
    page = client.get("/dashboard").text
    assert 'action="/api/submit"' not in page
    assert "fetch('/api/submit'" in page


def test_practice_page(client):
    response = client.get("/practice", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"

    signup(client)
    page = client.get("/practice")
    assert page.status_code == 200
    assert "What is 7 × 6?" in page.text
    assert "fetch('/api/progress'" in page.text


def test_practice_sync_shows_on_dashboard(client):
    signup(client)
    items = [
        {"question": "7x6", "answer": "42", "correct": True, "time": 1700000000000},
        {"question": "9x8", "answer": "71", "correct": False, "time": 1700000001000},
    ]
    assert client.post("/api/progress", json={"items": items}).json() == {"saved": True}

    page = client.get("/dashboard").text
    assert "7x6: 42" in page
    assert "9x8: 71" in page
