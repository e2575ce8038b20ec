import pytest


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run in an empty directory so config.json never leaks between tests."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
