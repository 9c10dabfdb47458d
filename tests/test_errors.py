"""Tests for connscope.errors — composite and release error rendering."""

from __future__ import annotations

from connscope.errors import CompositeError, ReleaseError, ScopeError, WorkError


def _raised(exc):
    try:
        raise exc
    except Exception as caught:
        return caught


def test_composite_error_labels_primary_then_secondary():
    primary = ValueError("bad row")
    secondary = _raised(ConnectionError("socket closed"))
    err = CompositeError(primary, secondary)

    message = str(err)
    assert "(1) primary failure" in message
    assert "(2) secondary failure" in message
    assert message.index("ValueError: bad row") < message.index("ConnectionError: socket closed")
    # Full traceback of the secondary, not just its message.
    assert "Traceback (most recent call last)" in message


def test_composite_error_keeps_primary_as_cause():
    primary = ValueError("bad row")
    err = CompositeError(primary, ConnectionError("socket closed"))
    assert err.__cause__ is primary
    assert isinstance(err, ScopeError)


def test_release_error_keeps_discarded_result():
    secondary = _raised(ConnectionError("socket closed"))
    err = ReleaseError(secondary, discarded_result={"rows": 3})
    assert err.discarded_result == {"rows": 3}
    assert err.__cause__ is secondary
    assert "ran successfully" in str(err)
    assert "socket closed" in str(err)


def test_work_error_wraps_value():
    err = WorkError({"code": "E_X"})
    assert err.value == {"code": "E_X"}
    assert "E_X" in str(err)
