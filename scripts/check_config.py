"""Check that the environment carries the configuration Takt needs in production.

Values are read the same way the server reads them (environment first, then
``.env``). Secrets are masked in the output.

Usage:
    python -m scripts.check_config
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import List

from sqlalchemy.engine import make_url

from takt.server.core.config import Settings

from .common import RULE, build_parser, mask


@dataclass(frozen=True)
class ConfigCheck:
    env_var: str
    display: str
    provided: bool
    required: bool


def _describe_database_url(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def check_config(config: Settings) -> List[ConfigCheck]:
    """Describe each setting an operator needs to review, in display form."""
    provided = config.model_fields_set
    return [
        ConfigCheck("DATABASE_URL", _describe_database_url(config.database_url), "database_url" in provided, True),
        ConfigCheck("RESEND_API_KEY", mask(config.resend_api_key), bool(config.resend_api_key), True),
        ConfigCheck("EMAIL_FROM", config.email_from, "email_from" in provided, False),
        ConfigCheck("APP_URL", config.app_url, "app_url" in provided, True),
        ConfigCheck(
            "PLATFORM_SUPERADMINS",
            ", ".join(config.platform_superadmins) or "<unset>",
            bool(config.platform_superadmins),
            True,
        ),
        ConfigCheck("SESSION_COOKIE_SECURE", str(config.session_cookie_secure), config.session_cookie_secure, False),
        ConfigCheck("CORS_ORIGINS", ", ".join(config.cors_origins), "cors_origins" in provided, False),
        ConfigCheck("TAKT_LOG_LEVEL", config.log_level, "log_level" in provided, False),
    ]


def main() -> None:
    build_parser(__doc__, database=False).parse_args()
    checks = check_config(Settings())

    print("CONFIGURATION")
    print(RULE)
    for check in checks:
        if check.provided:
            status = "ok"
        else:
            status = "MISSING" if check.required else "default"
        print(f"{status:<8} {check.env_var:<22} {check.display}")

    missing = [check.env_var for check in checks if check.required and not check.provided]
    print(RULE)
    if missing:
        print(f"Missing required settings: {', '.join(missing)}")
        sys.exit(1)
    print("All required settings are present")


if __name__ == "__main__":
    main()
