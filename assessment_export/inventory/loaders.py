"""
Inventory document loading.

Reads assessment, snapshot, or inventory documents exported from the planner
API (JSON) or hand-written fixtures (YAML).
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from assessment_export.exceptions import InventoryFileError

logger = logging.getLogger(__name__)


class InventoryLoader:
    """
    Loads and parses inventory documents.

    Knows HOW to load the supported file formats but not what the document
    contains; shape resolution is left to select_inventory() and
    normalize_inventory().

    Example:
        >>> loader = InventoryLoader()
        >>> document = loader.load(Path("assessment.json"))
    """

    YAML_SUFFIXES = {".yaml", ".yml"}

    def load(self, file_path: Path) -> dict[str, Any]:
        """
        Load and parse an inventory document.

        Args:
            file_path: Path to a .json, .yaml or .yml file

        Returns:
            Parsed document as dict

        Raises:
            InventoryFileError: If the file is missing, unreadable, malformed,
                or not a mapping at the top level
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise InventoryFileError(str(file_path), "file not found")

        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise InventoryFileError(str(file_path), str(e)) from e

        if file_path.suffix.lower() in self.YAML_SUFFIXES:
            document = self._parse_yaml(file_path, text)
        else:
            document = self._parse_json(file_path, text)

        if not isinstance(document, dict):
            raise InventoryFileError(
                str(file_path),
                f"expected a mapping at the top level, got {type(document).__name__}",
            )

        logger.debug(f"Loaded inventory document {file_path} ({len(text)} bytes)")
        return document

    def _parse_json(self, file_path: Path, text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise InventoryFileError(str(file_path), f"invalid JSON: {e}") from e

    def _parse_yaml(self, file_path: Path, text: str) -> Any:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise InventoryFileError(str(file_path), f"invalid YAML: {e}") from e
