"""Read-only registry of confirmation page templates."""

import html
import logging
import uuid
from collections.abc import Mapping
from types import MappingProxyType

logger = logging.getLogger(__name__)

TOKEN_SLOT = "{0}"
EMAIL_SLOT = "{1}"


def normalize_template_id(template_id: str | None) -> str | None:
    """Return the canonical UUID form of ``template_id``, or None if it isn't one."""
    if not template_id:
        return None
    try:
        return str(uuid.UUID(template_id.strip()))
    except ValueError:
        return None


class TemplateRegistry:
    """Maps template UUIDs to HTML strings with ``{0}`` (token) and ``{1}`` (email) slots.

    Built once at startup and never mutated afterwards.
    """

    def __init__(self, templates: Mapping[str, str], default_template: str) -> None:
        normalized: dict[str, str] = {}
        for raw_id, body in templates.items():
            template_id = normalize_template_id(raw_id)
            if template_id is None:
                raise ValueError(f"Template identifier is not a UUID: {raw_id!r}")
            normalized[template_id] = body
        self._templates: Mapping[str, str] = MappingProxyType(normalized)
        self._default = default_template
        logger.info("Loaded %d templates", len(normalized))

    @property
    def default_template(self) -> str:
        return self._default

    def get(self, template_id: str | None) -> str | None:
        key = normalize_template_id(template_id)
        if key is None:
            return None
        return self._templates.get(key)

    def contains(self, template_id: str | None) -> bool:
        return self.get(template_id) is not None

    def get_or_default(self, template_id: str | None) -> str:
        template = self.get(template_id)
        if template is None:
            logger.info("Template %s not registered, using default", template_id)
            return self._default
        return template

    @staticmethod
    def render(template: str, token: str, email: str) -> str:
        """Fill the positional slots. Other braces in the HTML are left alone."""
        return template.replace(TOKEN_SLOT, html.escape(token)).replace(
            EMAIL_SLOT, html.escape(email)
        )

    def __len__(self) -> int:
        return len(self._templates)
