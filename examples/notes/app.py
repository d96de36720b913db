"""Notes: a per-user notes app on perch.

Demonstrates the framework substrate working together:
1. Container-provided ``db`` injected into handlers by name
2. ``find_or_fail()`` turning a missing row into a 404
3. ``authorize()`` turning someone else's note into a 403
4. Validation failures redirecting back with errors and old input flashed

Run with any ASGI server::

    uvicorn app:app
"""

import os
from pathlib import Path

from perch import App, AppConfig, Database, Redirect, Request, Session, Template, authorize
from perch.errors import ValidationError
from perch.validation import email, required, string, validate

TEMPLATES_DIR = Path(__file__).parent / "templates"
SCHEMA = (Path(__file__).parent / "schema.sql").read_text()
DB_PATH = Path(os.environ.get("PERCH_NOTES_DB", str(Path(__file__).parent / "notes.db")))

app = App(
    AppConfig(
        secret_key=os.environ.get("SESSION_SECRET_KEY", "dev-only-not-for-production"),
        template_dir=TEMPLATES_DIR,
        database={"driver": "sqlite", "database": str(DB_PATH)},
    )
)


@app.on_startup
async def create_schema(db: Database) -> None:
    await db.execute_script(SCHEMA)


def current_user_id(session: Session) -> int:
    return session.get("user")["id"]


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


@app.get("/", name="home")
def home(session: Session):
    return Template("index.html", heading="Home", user=session.get("user"))


@app.get("/notes", middleware="auth", name="notes.index")
async def index(db: Database, session: Session):
    notes = await db.query(
        "SELECT * FROM notes WHERE user_id = :user ORDER BY id",
        {"user": current_user_id(session)},
    ).get()
    return Template("notes/index.html", heading="My Notes", notes=notes)


@app.get("/notes/create", middleware="auth", name="notes.create")
def create():
    return Template("notes/create.html", heading="Create Note")


@app.get("/notes/{id:int}", middleware="auth", name="notes.show")
async def show(id: int, db: Database, session: Session):
    note = await db.query("SELECT * FROM notes WHERE id = :id", {"id": id}).find_or_fail()
    authorize(note["user_id"] == current_user_id(session))
    return Template("notes/show.html", heading="Note", note=note)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


@app.post("/notes", middleware="auth", name="notes.store")
async def store(request: Request, db: Database, session: Session):
    data = validate(request.form, {
        "body": [string(1, 1000, "A body of no more than 1,000 characters is required.")],
    }).raise_for_errors(old=request.form)

    await db.execute(
        "INSERT INTO notes (body, user_id) VALUES (:body, :user)",
        {"body": data["body"], "user": current_user_id(session)},
    )
    return Redirect("/notes")


@app.delete("/notes/{id:int}", middleware="auth", name="notes.destroy")
async def destroy(id: int, db: Database, session: Session):
    note = await db.query("SELECT * FROM notes WHERE id = :id", {"id": id}).find_or_fail()
    authorize(note["user_id"] == current_user_id(session))

    await db.execute("DELETE FROM notes WHERE id = :id", {"id": id})
    return Redirect("/notes")


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@app.get("/login", middleware="guest", name="session.create")
def login_form():
    return Template("session/create.html", heading="Log In")


@app.post("/session", middleware="guest", name="session.store")
async def login(request: Request, db: Database, session: Session):
    data = validate(request.form, {"email": [required, email]}).raise_for_errors(
        old=request.form
    )
    user = await db.query("SELECT * FROM users WHERE email = :email", data).fetch()
    if user is None:
        ValidationError.throw(
            {"email": ["No matching account found for that email address."]},
            old=request.form,
        )
    session.put("user", {"id": user.get_int("id"), "email": user.get_str("email")})
    return Redirect("/")


@app.delete("/session", middleware="auth", name="session.destroy")
def logout(session: Session):
    session.flush()
    return Redirect("/")


@app.error(404)
def not_found():
    return Template("404.html", heading="Page Not Found")


@app.error(403)
def forbidden():
    return Template("403.html", heading="Forbidden")
