from blog.session import AUTH_KEY, EMAIL_KEY, SessionState
from gateway import GatewayError


def test_load_reads_current_user(fake_gateway, ada):
    fake_gateway.login_as("ada@example.com")
    store = {}
    session = SessionState(fake_gateway, store)
    user = session.load()
    assert user.email == "ada@example.com"
    assert session.email == "ada@example.com"
    assert store[EMAIL_KEY] == "ada@example.com"
    assert store[AUTH_KEY]["user"]["email"] == "ada@example.com"


def test_load_failure_means_signed_out(fake_gateway):
    fake_gateway.fail["get_current_user"] = GatewayError("JWT expired", status=401)
    session = SessionState(fake_gateway)
    assert session.load() is None
    assert not session.is_authenticated


def test_subscription_is_scoped(fake_gateway, ada):
    session = SessionState(fake_gateway)
    with session:
        assert session.subscribed
        assert len(fake_gateway._auth_listeners) == 1
    assert not session.subscribed
    assert fake_gateway._auth_listeners == []


def test_subscription_released_when_view_raises(fake_gateway):
    session = SessionState(fake_gateway)
    try:
        with session:
            raise ValueError("render failed")
    except ValueError:
        pass
    assert fake_gateway._auth_listeners == []


def test_reentering_does_not_duplicate_listener(fake_gateway):
    session = SessionState(fake_gateway)
    session.subscribe()
    session.subscribe()
    assert len(fake_gateway._auth_listeners) == 1
    session.unsubscribe()


def test_transitions_update_store_and_listeners_together(fake_gateway, ada):
    store = {}
    seen = []
    session = SessionState(fake_gateway, store)
    session.add_listener(lambda user: seen.append((user.email if user else None, store.get(EMAIL_KEY))))

    with session:
        fake_gateway.sign_in_with_password("ada@example.com", "analytical")
        fake_gateway.sign_out()

    assert seen == [("ada@example.com", "ada@example.com"), (None, None)]
    assert store[AUTH_KEY] is None
    assert session.email is None


def test_no_notifications_after_exit(fake_gateway, ada):
    seen = []
    session = SessionState(fake_gateway)
    session.add_listener(seen.append)
    with session:
        pass
    fake_gateway.sign_in_with_password("ada@example.com", "analytical")
    assert seen == []
    assert session.email is None
