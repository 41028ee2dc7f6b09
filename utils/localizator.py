import json
from pathlib import Path
from typing import Optional

import config
from enums.shop_entity import ShopEntity


class Localizator:
    l10n_dir = Path(__file__).resolve().parent.parent / "l10n"

    @staticmethod
    def get_text(entity: ShopEntity, key: str, lang: Optional[str] = None) -> str:
        """
        Get localized text for given entity and key.

        Args:
            entity: Entity type (ADMIN, USER, COMMON)
            key: Localization key
            lang: Optional language code (e.g., "de", "en").
                  If None, uses config.SHOP_LANGUAGE (default).
                  Use this parameter in concurrent contexts (e.g., FastAPI routes)
                  to avoid global state race conditions.

        Returns:
            Localized text string

        Example:
            text = Localizator.get_text(ShopEntity.USER, "discount_usage_limit_reached", lang="en")
        """
        language = lang if lang is not None else config.SHOP_LANGUAGE
        localization_file = Localizator.l10n_dir / f"{language}.json"

        with open(localization_file, "r", encoding="UTF-8") as f:
            data = json.loads(f.read())
            if entity == ShopEntity.ADMIN:
                return data["admin"][key]
            elif entity == ShopEntity.USER:
                return data["user"][key]
            else:
                return data["common"][key]
