from __future__ import annotations

import csv
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "type", "symbol", "quantity")
OPTIONAL_COLUMNS = (
    "price_per_unit",
    "total_amount",
    "fees",
    "currency",
    "exchange_rate",
    "broker",
    "asset_name",
)


def load_transactions_csv(path: str | Path) -> list[dict[str, str]]:
    """Read one normalized transaction CSV into raw records.

    Rows are returned as plain dicts; validation happens in the normalizer so
    a bad row is reported rather than aborting the load.
    """
    with open(path, encoding="utf-8-sig", newline="") as fp:
        reader = csv.DictReader(fp)
        header = [h.strip() for h in (reader.fieldnames or [])]
        missing = [c for c in REQUIRED_COLUMNS if c not in header]
        if missing:
            raise ValueError(f"{path}: missing required column(s) {missing}")

        unknown = [h for h in header if h not in REQUIRED_COLUMNS + OPTIONAL_COLUMNS]
        if unknown:
            logger.debug("%s: ignoring column(s) %s", path, unknown)

        rows = []
        for row in reader:
            record = {
                k.strip(): (v or "").strip() for k, v in row.items() if k is not None
            }
            if not any(record.values()):
                continue
            rows.append(record)

    logger.debug("Loaded %d row(s) from %s", len(rows), path)
    return rows
