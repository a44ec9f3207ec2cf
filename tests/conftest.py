import pytest
from fastapi.testclient import TestClient

from app.application import create_app
from app.services.mailer import MailDeliveryError
from config import Settings


class FakeMailer:
    """Records reset emails instead of sending them; can be told to fail."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_password_reset(self, to_email, user_name, reset_url):
        if self.fail:
            raise MailDeliveryError("smtp unavailable")
        self.sent.append({"to": to_email, "name": user_name, "url": reset_url})

    def verify(self):
        if self.fail:
            raise MailDeliveryError("smtp unavailable")

    @property
    def last_token(self):
        return self.sent[-1]["url"].rsplit("/", 1)[-1]


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        frontend_url="http://ui.test",
        email_user="support@expensia.test",
        email_password="mail-pass",
        log_level="WARNING",
    )


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def app(settings, mailer):
    return create_app(settings, mailer=mailer)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def register(client, name="Alice", email="alice@example.com", password="secret1"):
    res = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert res.status_code == 201, res.text
    return res.json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}
