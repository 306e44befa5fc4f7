import yaml
import pathlib
from typing import List, Optional
from pydantic import ValidationError

from incsql.common.settings import settings
from incsql.schema import PartitionCatalog, TablePartitions
from .partitions import PartitionFileConfig

class ConfigManager:
    """
    Centralized manager for reading application configuration files.
    """

    def __init__(self, project_root: Optional[pathlib.Path] = None):
        """
        Args:
            project_root: Optional override for project root.
                          If None, paths from settings resolve against the CWD.
        """
        self.project_root = project_root

        root = self.project_root or pathlib.Path.cwd()
        self._partitions_path = root / settings.partition_config_path

    def load_partitions(self, path: Optional[pathlib.Path] = None) -> List[TablePartitions]:
        """
        Loads partitioned table definitions from YAML.
        """
        target_path = path or self._partitions_path

        if not target_path.exists():
            raise FileNotFoundError(f"Partition config not found: {target_path}")

        try:
            raw = yaml.safe_load(target_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML from {target_path}: {e}")

        try:
            file_config = PartitionFileConfig.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Partition Configuration Invalid: {e}")

        return [item.to_entry() for item in file_config.partitions]

    def populate_catalog(
        self, catalog: PartitionCatalog, path: Optional[pathlib.Path] = None
    ) -> int:
        """Registers every configured table in the catalog. Returns the count."""
        entries = self.load_partitions(path)
        for entry in entries:
            catalog.register(entry)
        return len(entries)
