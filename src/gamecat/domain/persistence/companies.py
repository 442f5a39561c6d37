"""Company master records and their per-game roles."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Final

from gamecat.domain.model import Company, GameCompanyRole

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gamecat.domain.model import CompanyRecord, Game
    from gamecat.domain.ports import CompanyRepository

log = logging.getLogger(__name__)

MAX_COMPANY_SLUG_LENGTH: Final[int] = 100
UNKNOWN_COMPANY_SLUG: Final[str] = "unknown-company"
MAX_SLUG_ATTEMPTS: Final[int] = 100

_DISALLOWED = re.compile(r"[^a-z0-9가-힣\s-]")


def company_slug(name: str | None) -> str:
    if not name or not name.strip():
        return UNKNOWN_COMPANY_SLUG
    slug = _DISALLOWED.sub("", name.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:MAX_COMPANY_SLUG_LENGTH].rstrip("-") or UNKNOWN_COMPANY_SLUG


class CompanyRegistry:
    def resolve(self, record: CompanyRecord, companies: CompanyRepository) -> Company:
        """Find a company by slug, then by case-insensitive name, else create it."""
        slug = (record.slug or "").strip().lower() or company_slug(record.name)
        existing = companies.find_by_slug(slug)
        if existing is None:
            existing = companies.find_by_name(record.name)
        if existing is not None:
            return existing

        unique = slug
        attempt = 1
        while companies.slug_exists(unique):
            attempt += 1
            if attempt > MAX_SLUG_ATTEMPTS:
                raise ValueError(f"Could not find a free slug for company {record.name!r}")
            suffix = f"-{attempt}"
            unique = f"{slug[: MAX_COMPANY_SLUG_LENGTH - len(suffix)]}{suffix}"
        company = Company(name=record.name.strip(), slug=unique)
        companies.add(company)
        log.debug("Created company %s (%s)", company.name, company.slug)
        return company

    def link(
        self,
        game: Game,
        records: Sequence[CompanyRecord],
        companies: CompanyRepository,
    ) -> int:
        """Attach companies to ``game``; returns the number of new role rows."""
        if game.id is None:
            raise ValueError("Game must be flushed before company roles are linked")
        created = 0
        for record in records:
            if not record.name or not record.name.strip():
                continue
            company = self.resolve(record, companies)
            if company.id is None:
                raise ValueError(f"Company {record.name!r} was not assigned an id")
            if companies.has_role(game.id, company.id, record.role):
                continue
            companies.add_role(
                GameCompanyRole(game_id=game.id, company_id=company.id, role=record.role)
            )
            created += 1
        return created
