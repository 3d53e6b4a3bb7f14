"""Seed an administrator and a demo developer."""

from app import create_app
from models import db
from models.user import User

ACCOUNTS = (
    ("Platform Admin", "admin@example.com", "AdminPass123", "admin"),
    ("Demo Developer", "dev@example.com", "DevPass123", "developer"),
)


def upsert_user(name: str, email: str, password: str, role: str) -> str:
    """Create the account or reset it to the seeded state."""

    user = User.query.filter_by(email=email).first()
    action = "updated"
    if user is None:
        user = User(email=email)
        db.session.add(user)
        action = "created"
    user.set_name(name)
    user.role = role
    user.mark_verified()
    user.set_password(password)
    return action


def main() -> None:
    app = create_app()
    with app.app_context():
        for name, email, password, role in ACCOUNTS:
            action = upsert_user(name, email, password, role)
            print(f"{role.capitalize()} user {action}: {email}")
        db.session.commit()


if __name__ == "__main__":
    main()
