"""Configuration model for the ingestkit-cells pipeline.

Provides ``CellReaderConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib

from pydantic import BaseModel


class CellReaderConfig(BaseModel):
    """All tunable parameters with sensible defaults for typed sheet reads.

    Keyword arguments passed to :func:`~ingestkit_cells.reader.read_excel`
    take precedence over the values held here.
    """

    # --- Identity ---
    parser_version: str = "ingestkit_cells:1.0.0"

    # --- Missing values ---
    na: list[str] = [""]

    # --- Type guessing ---
    guess_max: int = 1000
    guess_max_limit: int = 2147483647 // 100

    # --- Column names ---
    name_prefix: str = "X"
    name_sep: str = "__"

    # --- Logging / PII safety ---
    log_cell_values: bool = False

    @classmethod
    def from_file(cls, path: str) -> CellReaderConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Any keys present in the file override the
        corresponding defaults; keys not present retain their defaults.

        Args:
            path: Filesystem path to the configuration file.

        Returns:
            A fully-populated ``CellReaderConfig`` instance.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the file extension is not recognized.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml  # type: ignore[import-untyped]

            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
