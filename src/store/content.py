# company settings, banners and news ticker
from __future__ import annotations

import dataclasses
from typing import Iterable, List, Optional

from store.errors import MissingRequiredField, ValidationError
from store.models import Banner, CompanySettings, User
from store.users import Permission, RoleGate
from utils.logger import get_logger

_logger = get_logger(__name__)


class ContentStore:
    def __init__(
        self,
        settings: CompanySettings,
        banners: Iterable[Banner] = (),
        news: Iterable[str] = (),
    ) -> None:
        self._settings = settings
        self._banners: List[Banner] = list(banners)
        self._news: List[str] = list(news)

    @property
    def settings(self) -> CompanySettings:
        return self._settings

    @property
    def banners(self) -> List[Banner]:
        return list(self._banners)

    @property
    def news(self) -> List[str]:
        return list(self._news)

    def update_settings(self, actor: Optional[User], **changes) -> CompanySettings:
        RoleGate.require(actor, Permission.MANAGE_CONTENT)
        allowed = {f.name for f in dataclasses.fields(CompanySettings)}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), None, "unknown setting")

        updated = dataclasses.replace(self._settings, **changes)
        for key in ("name", "whatsapp_number"):
            if not str(getattr(updated, key) or "").strip():
                raise MissingRequiredField(key)
        digits = updated.whatsapp_number.replace("+", "").replace(" ", "")
        if not digits.isdigit():
            raise ValidationError("whatsapp_number", updated.whatsapp_number, "digits only")

        self._settings = dataclasses.replace(updated, whatsapp_number=digits)
        _logger.info(f"Company settings updated by {actor.id}: {sorted(changes)}")
        return self._settings

    def update_banners(self, actor: Optional[User], banners: Iterable[Banner]) -> List[Banner]:
        RoleGate.require(actor, Permission.MANAGE_CONTENT)
        banners = list(banners)
        for banner in banners:
            if not banner.headline.strip():
                raise MissingRequiredField("headline")
        self._banners = banners
        _logger.info(f"Banners replaced by {actor.id} ({len(banners)} banners)")
        return self.banners

    def update_news(self, actor: Optional[User], news: Iterable[str]) -> List[str]:
        RoleGate.require(actor, Permission.MANAGE_CONTENT)
        self._news = [line.strip() for line in news if line and line.strip()]
        _logger.info(f"News ticker replaced by {actor.id} ({len(self._news)} lines)")
        return self.news
