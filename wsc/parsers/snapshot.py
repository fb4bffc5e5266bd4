"""
Scan snapshot parser: read access point observations from JSON.

Accepted shapes are a bare list of objects or an object with a
``networks`` list, each entry carrying ``ssid``, ``frequency`` and ``level``
(``frequency_mhz`` / ``level_dbm`` / ``rssi`` are accepted as aliases).
"""

import json
from pathlib import Path
from typing import Any, Iterator

from pydantic import ValidationError

from wsc.analysis.types import AccessPointObservation
from wsc.utils.log import get_logger
from wsc.utils.validate import ObservationIn

logger = get_logger(__name__)


def load_snapshot(file_path: str | Path) -> list[AccessPointObservation]:
    """
    Read a snapshot file and return its valid observations.

    Parameters
    ----------
    file_path : str | Path
        Path to a JSON snapshot.

    Returns
    -------
    list[AccessPointObservation]
        Observations in file order; invalid entries are skipped.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    observations = list(parse_snapshot(data))
    logger.info("Loaded %d observations from %s", len(observations), file_path)
    return observations


def parse_snapshot(data: Any) -> Iterator[AccessPointObservation]:
    """
    Yield observations from already-decoded JSON data.
    """
    if isinstance(data, dict):
        data = data.get("networks", [])
    if not isinstance(data, list):
        raise ValueError("snapshot must be a list of observations or {'networks': [...]}")

    for i, entry in enumerate(data):
        try:
            obs = ObservationIn.model_validate(entry)
        except ValidationError as e:
            logger.warning("Skipping snapshot entry %d: %s", i, e.errors()[0]["msg"])
            continue
        yield to_observation(obs)


def to_observation(obs: ObservationIn) -> AccessPointObservation:
    return AccessPointObservation(
        ssid=obs.ssid or "",
        frequency_mhz=obs.frequency,
        level_dbm=obs.level,
    )
