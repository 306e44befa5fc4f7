from .partitions import PartitionConfig, PartitionFileConfig
from .manager import ConfigManager
