"""Reference data registries: workflow catalog and employee roster."""

from __future__ import annotations

import os
from typing import NamedTuple, Optional

from ..config import StitchflowConfig, load_config
from .catalog import WorkflowCatalog
from .roster import Roster


class ReferenceData(NamedTuple):
    catalog: WorkflowCatalog
    roster: Roster


_reference_instance: ReferenceData | None = None


def get_reference_data(
    path: Optional[str] = None, config: Optional[StitchflowConfig] = None
) -> ReferenceData:
    """Return the catalog and roster used by the running process.

    The file is taken from ``path``, the ``STITCHFLOW_REFERENCE_DATA``
    environment variable or ``reference_data`` in the loaded configuration.
    Without any of them an empty catalog and roster are returned. The result
    is cached for subsequent calls without arguments.
    """

    global _reference_instance
    if _reference_instance is not None and path is None and config is None:
        return _reference_instance

    from ..codec import load_reference_data

    config = config or load_config()
    path = path or os.getenv("STITCHFLOW_REFERENCE_DATA") or config.reference_data

    if not path:
        _reference_instance = ReferenceData(WorkflowCatalog(), Roster())
    else:
        _reference_instance = ReferenceData(*load_reference_data(path))
    return _reference_instance


def set_reference_data(catalog: WorkflowCatalog, roster: Roster) -> ReferenceData:
    """Install an explicit catalog and roster, e.g. from tests."""

    global _reference_instance
    _reference_instance = ReferenceData(catalog, roster)
    return _reference_instance


__all__ = [
    "WorkflowCatalog",
    "Roster",
    "ReferenceData",
    "get_reference_data",
    "set_reference_data",
]
