import pytest

from megatex.reporting import base


@pytest.fixture(autouse=True)
def _isolate_active_reporter(monkeypatch):
    # cli.main() installs a process-wide reporter bound to the (captured)
    # stderr of the test that ran it; reset it so it doesn't leak.
    monkeypatch.setattr(base, "_ACTIVE_REPORTER", None)
