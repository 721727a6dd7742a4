import pytest

from scripts import check_config
from scripts.check_config import check_config as run_checks
from takt.server.core.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DATABASE_URL", "RESEND_API_KEY", "APP_URL", "NEXT_PUBLIC_APP_URL", "PLATFORM_SUPERADMINS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir("/")


def test_all_required_present(clean_env):
    config = Settings(
        DATABASE_URL="postgresql+asyncpg://takt:secret@db/takt",
        RESEND_API_KEY="re_123456789",
        APP_URL="https://app.teamtakt.app",
        PLATFORM_SUPERADMINS="ops@teamtakt.app",
    )

    checks = {c.env_var: c for c in run_checks(config)}

    assert all(c.provided for c in checks.values() if c.required)
    assert checks["DATABASE_URL"].display == "postgresql+asyncpg://takt:***@db/takt"
    assert checks["RESEND_API_KEY"].display == "********6789"
    assert checks["PLATFORM_SUPERADMINS"].display == "ops@teamtakt.app"


def test_missing_required(clean_env):
    checks = {c.env_var: c for c in run_checks(Settings())}

    missing = sorted(name for name, c in checks.items() if c.required and not c.provided)
    assert missing == ["APP_URL", "DATABASE_URL", "PLATFORM_SUPERADMINS", "RESEND_API_KEY"]
    assert checks["RESEND_API_KEY"].display == "<unset>"


def test_main_exits_when_missing(clean_env, monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["check_config"])

    with pytest.raises(SystemExit) as exc_info:
        check_config.main()

    assert exc_info.value.code == 1
    assert "Missing required settings" in capsys.readouterr().out
