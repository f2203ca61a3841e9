"""Breed and species reference data loaded from JSON.

Used to seed the in-memory store in mock mode. Production breed data lives
in the Firestore ``breeds`` collection.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

DATA_FILE = Path(__file__).resolve().parent.parent.parent / "data" / "breeds.json"


@lru_cache(maxsize=1)
def load_breeds() -> tuple[dict, ...]:
    """Load breeds as ``{"id", "name", "species_id", "species_name"}`` dicts.

    Returns a tuple (hashable for lru_cache).
    """
    try:
        with open(DATA_FILE, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.error("Breed data file not found: %s", DATA_FILE)
        return ()
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in breed data file: %s", e)
        return ()

    breeds = tuple(
        {
            "id": breed["id"],
            "name": breed["name"],
            "species_id": species["id"],
            "species_name": species["name"],
        }
        for species in raw.get("species", [])
        for breed in species.get("breeds", [])
    )
    logger.info("Loaded %d breeds from %s", len(breeds), DATA_FILE)
    return breeds
