import pytest

from api import create_app


@pytest.fixture
def registered_exit_hooks(monkeypatch):
    hooks = []
    monkeypatch.setattr("api.atexit.register", hooks.append)
    return hooks


def _app(debug):
    return create_app("testing", overrides={"DEBUG": debug, "PURGE_INTERVAL_SECONDS": 60})


def test_sweeper_starts_and_stops_at_exit(monkeypatch, registered_exit_hooks):
    monkeypatch.delenv("WERKZEUG_RUN_MAIN", raising=False)
    app = _app(debug=False)
    sweeper = app.extensions["purge_sweeper"]
    try:
        assert sweeper.running
        assert registered_exit_hooks == [sweeper.stop]
    finally:
        sweeper.stop()
        app.extensions["storage"].dispose()
    assert not sweeper.running


def test_sweeper_skipped_in_reloader_parent(monkeypatch, registered_exit_hooks):
    monkeypatch.delenv("WERKZEUG_RUN_MAIN", raising=False)
    app = _app(debug=True)
    try:
        assert "purge_sweeper" not in app.extensions
        assert registered_exit_hooks == []
    finally:
        app.extensions["storage"].dispose()


def test_sweeper_runs_in_reloader_child(monkeypatch, registered_exit_hooks):
    monkeypatch.setenv("WERKZEUG_RUN_MAIN", "true")
    app = _app(debug=True)
    sweeper = app.extensions["purge_sweeper"]
    try:
        assert sweeper.running
    finally:
        sweeper.stop()
        app.extensions["storage"].dispose()


def test_testing_config_has_no_sweeper(app):
    assert "purge_sweeper" not in app.extensions
