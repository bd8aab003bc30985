"""Inputs to a service generation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import IO, Optional, Union


@dataclass
class Config:
    """Where the definition lives and where generated code should go.

    ``prev_gen`` holds the files of a previously generated service, keyed by
    path, or None when there is no earlier generation.
    """

    go_path: list[str] = field(default_factory=list)
    pb_package: str = ""
    pb_path: str = ""
    service_package: str = ""
    service_path: str = ""
    def_paths: list[str] = field(default_factory=list)
    prev_gen: Optional[dict[str, Union[str, bytes, IO]]] = None