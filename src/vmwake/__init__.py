"""vmwake — Wake-on-LAN orchestration and sleep/wake analytics for cluster nodes."""

__version__ = "0.1.0"
