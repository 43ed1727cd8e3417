from .paths import cpu_root, hardware_allowed
from .reader import SysfsCpuReader

__all__ = ["SysfsCpuReader", "cpu_root", "hardware_allowed"]
