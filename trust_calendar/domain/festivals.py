"""
Festival registry.

Supports:
- One-off festivals (exact date)
- Annual festivals (month/day repeat from their stored year onwards)
- Soft-deleted festivals (is_active = False) excluded from every query
- Seeding from a JSON config file
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import date as Date
from pathlib import Path
from typing import List, Optional

from .models import Festival


logger = logging.getLogger(__name__)


@dataclass
class FestivalRegistry:
    """In-memory collection of festivals with occurrence queries."""
    festivals: List[Festival] = field(default_factory=list)

    @classmethod
    def from_config(cls, config_path: Path) -> "FestivalRegistry":
        """
        Load festivals from a JSON config file.

        Expected shape:
            {"festivals": [
                {"name": "Paryushan", "date": "2025-08-20", "recurring": true,
                 "description": "..."}
            ]}

        Fallback: a missing or unreadable file gives an empty registry;
        invalid entries are skipped with a warning.

        Args:
            config_path: Path to festivals.json

        Returns:
            FestivalRegistry instance
        """
        festivals = []

        if not config_path.exists():
            return cls(festivals=festivals)

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load festivals config from %s: %s", config_path, e)
            return cls(festivals=festivals)

        items = config.get("festivals", []) if isinstance(config, dict) else None
        if not isinstance(items, list):
            logger.warning("Festivals config %s has no 'festivals' list, ignoring it", config_path)
            return cls(festivals=festivals)

        for item in items:
            if not isinstance(item, dict):
                logger.warning("Skipping festival entry %r: not an object", item)
                continue
            try:
                recurring = bool(item.get("recurring", False))
                festivals.append(Festival(
                    name=item["name"],
                    date=Date.fromisoformat(item["date"]),
                    description=item.get("description"),
                    is_recurring=recurring,
                    recurrence_pattern="annual" if recurring else None,
                    is_active=bool(item.get("active", True)),
                ))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid festival entry %r: %s", item, e)
                continue

        return cls(festivals=festivals)

    def active(self) -> List[Festival]:
        return [f for f in self.festivals if f.is_active]

    def festivals_on(self, day: Date) -> List[Festival]:
        """Active festivals occurring on a date, in registry order."""
        return [f for f in self.festivals if f.is_active and f.occurs_on(day)]

    def occurrence_in_year(self, festival: Festival, year: int) -> Optional[Date]:
        """
        Date a festival falls on in a given year, or None.

        None when the festival is one-off in another year, when a recurring
        festival is asked about a year before it was created, or for Feb 29
        in a non-leap year.
        """
        if not festival.is_recurring:
            return festival.date if festival.date.year == year else None
        if year < festival.date.year:
            return None
        try:
            return Date(year, festival.date.month, festival.date.day)
        except ValueError:
            # Feb 29 in a non-leap year
            return None

    def list_occurrences(self, year: int) -> List[tuple]:
        """Sorted (date, festival) pairs for every active festival in a year."""
        occurrences = []
        for festival in self.active():
            occurrence = self.occurrence_in_year(festival, year)
            if occurrence is not None:
                occurrences.append((occurrence, festival))
        occurrences.sort(key=lambda pair: pair[0])
        return occurrences
