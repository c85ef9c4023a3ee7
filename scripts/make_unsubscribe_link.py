"""Build an unsubscribe link for manual testing.

Prints the initiate URL for an address with the current UTC timestamp, plus
a ready-to-run curl command carrying the basic-auth credentials from the
environment (or .env file).

Usage:
    uv run python -m scripts.make_unsubscribe_link jane.doe@gmail.com

    # Pick a template and server:
    uv run python -m scripts.make_unsubscribe_link jane.doe@gmail.com \\
        --template 22222222-2222-2222-2222-222222222222 \\
        --base-url http://localhost:8000
"""

import argparse
import sys
from datetime import UTC, datetime
from urllib.parse import urlencode

from unsubscribe_service.core.config import get_settings

DEFAULT_TEMPLATE_ID = "11111111-1111-1111-1111-111111111111"


def build_link(base_url: str, email: str, template_id: str, issued_at: datetime) -> str:
    """Compose the initiate URL with the link's query parameters."""
    query = urlencode(
        {
            "id": email,
            "htmlTemplate": template_id,
            "t": issued_at.isoformat(timespec="seconds"),
        }
    )
    return f"{base_url.rstrip('/')}/unsubscribe?{query}"


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("--template", default=DEFAULT_TEMPLATE_ID)
    parser.add_argument("--base-url", default="http://localhost:8000")
    args = parser.parse_args()

    settings = get_settings()
    if not settings.manage_username:
        print("ERROR: MANAGE_USERNAME is not set in .env", file=sys.stderr)
        sys.exit(1)

    link = build_link(args.base_url, args.email, args.template, datetime.now(UTC))
    print(link)
    print(
        f"curl -i -u '{settings.manage_username}:{settings.manage_password}' '{link}'",
        file=sys.stderr,
    )


if __name__ == "__main__":
    main()
