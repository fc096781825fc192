"""Entry point behaviour."""

from calc_mcp import main as entry


def test_main_serves_app_on_configured_listener(monkeypatch):
    served = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, host, port: served.append((app, host, port)))

    entry.main()

    app, host, port = served[0]
    assert (host, port) == (entry.HOST, entry.PORT)
    assert app.state.locator is not None


def test_main_exits_quietly_on_keyboard_interrupt(monkeypatch):
    def interrupted(app, host, port):
        raise KeyboardInterrupt

    monkeypatch.setattr(entry.uvicorn, "run", interrupted)

    entry.main()
