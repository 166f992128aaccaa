"""
Process diagnostics for the health endpoint
"""

import os
import platform
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import psutil


class HealthChecker:
    """Collects lightweight process and host metrics; never raises"""

    def __init__(self):
        self.start_time = time.time()
        self._process = psutil.Process(os.getpid())

    def get_uptime(self) -> float:
        return round(time.time() - self.start_time, 3)

    def get_memory_info(self) -> Dict[str, Any]:
        """Get memory usage of this process and of the host"""
        try:
            rss = self._process.memory_info().rss
            host = psutil.virtual_memory()
            return {
                "rss_mb": round(rss / (1024**2), 2),
                "host_available_mb": round(host.available / (1024**2), 2),
                "host_percentage": host.percent,
            }
        except psutil.Error:
            return {}

    def check_directory_space(self, path: str) -> Dict[str, Any]:
        """Check free space where output files are written"""
        try:
            if os.path.exists(path):
                disk = psutil.disk_usage(path)
                free_gb = disk.free / (1024**3)
                return {
                    "path": path,
                    "free_space_gb": round(free_gb, 2),
                    "sufficient": free_gb > 1.0,  # At least 1GB free
                }
        except OSError:
            pass

        return {"path": path, "free_space_gb": 0, "sufficient": False}

    def get_process_health(
        self,
        *,
        service: str,
        environment: str,
        output_directory: Optional[str] = None,
        render_slots: Optional[Dict[str, int]] = None,
    ) -> Dict[str, Any]:
        """Health payload: fixed status fields plus best-effort diagnostics"""
        payload: Dict[str, Any] = {
            "status": "ok",
            "service": service,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": self.get_uptime(),
            "pid": os.getpid(),
            "python": platform.python_version(),
            "environment": environment,
            "memory": self.get_memory_info(),
        }
        if output_directory:
            payload["disk"] = self.check_directory_space(output_directory)
        if render_slots is not None:
            payload["renderSlots"] = render_slots
        return payload


# Global health checker instance
health_checker = HealthChecker()
