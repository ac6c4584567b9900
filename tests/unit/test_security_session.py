"""
Unit tests for the idle-lock Session Manager.
"""

import pytest
from unittest.mock import MagicMock, patch

from keyringdesk.core.exceptions import StateError
from keyringdesk.core.ring import Ring
from keyringdesk.security.session import SessionManager


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def session_manager():
    """Returns a fresh, locked SessionManager instance."""
    return SessionManager("keyring.json", ttl_seconds=300)


@pytest.fixture
def mock_transport():
    with patch("keyringdesk.security.session.load_ring") as mock_load, \
            patch("keyringdesk.security.session.save_ring") as mock_save:
        yield {"load": mock_load, "save": mock_save}


@pytest.fixture
def ring():
    return Ring("pw")


# ==============================================================================
# Tests: Locking & Unlocking
# ==============================================================================

def test_unlock_with_correct_password(session_manager, mock_transport):
    loaded = MagicMock()
    loaded.validate_password.return_value = True
    mock_transport["load"].return_value = loaded

    assert session_manager.unlock("pw") is True
    mock_transport["load"].assert_called_once_with("keyring.json")
    loaded.validate_password.assert_called_once_with("pw")
    assert session_manager.get_ring() is loaded


def test_unlock_with_wrong_password_stays_locked(session_manager, mock_transport):
    loaded = MagicMock()
    loaded.validate_password.return_value = False
    mock_transport["load"].return_value = loaded

    assert session_manager.unlock("nope") is False
    loaded.wipe.assert_called_once()
    assert not session_manager.unlocked
    with pytest.raises(StateError, match="Session is locked"):
        session_manager.get_ring()


def test_lock_wipes_ring(session_manager, ring):
    session_manager.unlock_with_ring(ring)
    session_manager.lock()

    assert not session_manager.unlocked
    assert ring._cipher is None
    with pytest.raises(StateError, match="wiped"):
        ring.dumps()


def test_unlock_with_ring_replaces_previous(session_manager):
    first, second = Ring("a"), Ring("b")
    session_manager.unlock_with_ring(first)
    session_manager.unlock_with_ring(second)

    assert session_manager.get_ring() is second
    with pytest.raises(StateError):
        first.dumps()


# ==============================================================================
# Tests: Expiration & Time
# ==============================================================================

def test_auto_lock_on_expiry(session_manager, ring):
    with patch("time.time") as mock_time:
        mock_time.return_value = 1000.0
        session_manager.unlock_with_ring(ring)

        # Move time forward past expiry
        mock_time.return_value = 1301.0

        with pytest.raises(StateError, match="Session expired and was locked"):
            session_manager.get_ring()

        assert not session_manager.unlocked


def test_access_counts_as_activity(session_manager, ring):
    with patch("time.time") as mock_time:
        mock_time.return_value = 1000.0
        session_manager.unlock_with_ring(ring)

        mock_time.return_value = 1200.0
        session_manager.get_ring()

        # 400s after unlock but only 200s after the last access
        mock_time.return_value = 1400.0
        assert session_manager.get_ring() is ring


def test_extend_session(session_manager, ring):
    with patch("time.time") as mock_time:
        mock_time.return_value = 1000.0
        session_manager.unlock_with_ring(ring)
        original_expiry = session_manager._expires_at

        session_manager.extend(60)
        assert session_manager._expires_at == original_expiry + 60.0


def test_extend_raises_if_locked(session_manager):
    with pytest.raises(StateError, match="Session is locked"):
        session_manager.extend(60)


# ==============================================================================
# Tests: Save
# ==============================================================================

def test_save_writes_to_source(session_manager, mock_transport, ring):
    session_manager.unlock_with_ring(ring)
    session_manager.save()
    mock_transport["save"].assert_called_once_with(ring, "keyring.json")


def test_save_raises_if_locked(session_manager, mock_transport):
    with pytest.raises(StateError):
        session_manager.save()
    mock_transport["save"].assert_not_called()


def test_relock_after_expiry_needs_fresh_load(tmp_path):
    """After an idle lock the next unlock reads the file again."""
    path = tmp_path / "k.json"
    ring = Ring("pw")
    ring.new_item("a", username="u")
    path.write_text(ring.dumps(), encoding="utf-8")

    session = SessionManager(str(path), ttl_seconds=300)
    assert session.unlock("pw")
    session.lock()
    assert session.unlock("pw")
    assert session.get_ring().get_item("a").username == "u"
