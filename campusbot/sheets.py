"""Loading department records from Google Sheets CSV exports."""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING

import requests

from .config import config
from .models import RecordCategory, TabularStore

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = config.get_logger(__name__)


def parse_csv(text: str) -> list[dict[str, str | None]]:
    """Parse CSV text using the header row as field names.

    Blank lines are skipped.

    Returns:
        One dict per data row.
    """
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    return [row for row in reader if any(_has_text(value) for value in row.values())]


def _has_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


class SheetLoader:
    """Fetches every record category from its spreadsheet tab."""

    def __init__(
        self,
        sheet_id: str | None = None,
        gids: Mapping[str, str | None] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Configure the spreadsheet to read from.

        Args:
            sheet_id: Google spreadsheet id. If None, uses config.GOOGLE_SHEET_ID.
            gids: Category value to tab gid. If None, uses config.sheet_gids().
            timeout: Per-request timeout in seconds. If None, uses
                config.SHEETS_TIMEOUT.
        """
        self.sheet_id = sheet_id or config.GOOGLE_SHEET_ID
        self.gids = dict(gids) if gids is not None else config.sheet_gids()
        self.timeout = timeout if timeout is not None else config.SHEETS_TIMEOUT

    def url_for(self, category: RecordCategory) -> str | None:
        """Return the CSV export URL for a category, or None if unconfigured."""
        gid = self.gids.get(category.value)
        if not gid or not self.sheet_id:
            return None
        return config.sheet_url(gid, sheet_id=self.sheet_id)

    def load_csv(self, url: str) -> list[dict[str, str | None]]:
        """Download and parse one CSV document.

        Returns:
            Parsed rows, or an empty list if the download or parse failed.
        """
        try:
            response = requests.get(
                url,
                headers=config.get_api_headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            response.encoding = "utf-8"
            rows = parse_csv(response.text)
        except (requests.RequestException, csv.Error, UnicodeDecodeError):
            logger.exception("Failed to load CSV from %s", url)
            return []
        else:
            return rows

    def load_category(self, category: RecordCategory) -> list[dict[str, str | None]]:
        """Load the rows for one category; failures yield an empty list."""
        url = self.url_for(category)
        if url is None:
            logger.warning("No sheet configured for %s records", category.value)
            return []
        return self.load_csv(url)

    def load_all(self) -> TabularStore:
        """Load all seven categories into a new store.

        Returns:
            TabularStore holding whatever could be loaded.
        """
        logger.info("Loading all CSV sheets...")
        rows = {category: self.load_category(category) for category in RecordCategory}
        store = TabularStore.from_rows(rows)

        logger.info(
            "Loaded: %s",
            ", ".join(
                f"{count} {category.value}" for category, count in store.counts().items()
            ),
        )
        return store
