"""Health checks for the verifier's external dependencies."""

import os
import shutil
import tempfile
import time
from datetime import datetime
from typing import Any, Callable, Dict

import psutil
import redis

from statement_verifier.config.settings import Settings
from statement_verifier.utils.logger import get_logger

GIB = 1024 ** 3


class HealthChecker:
    """Checks that everything a verification run depends on is available."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = get_logger(__name__)

        self.components: Dict[str, Callable[[], Dict[str, Any]]] = {
            'rasterizer': self._check_rasterizer,
            'api_key': self._check_api_key,
            'temp_dir': self._check_temp_dir,
            'disk_space': self._check_disk_space,
            'memory': self._check_memory_usage,
            'broker': self._check_broker,
        }
        # Failing any of these makes a run impossible
        self.critical_components = {'rasterizer', 'api_key', 'temp_dir'}

    def run_health_check(self) -> Dict[str, Any]:
        """Run every component check and summarise the overall status."""
        start_time = time.time()
        health_data: Dict[str, Any] = {
            'status': 'healthy',
            'timestamp': datetime.now().isoformat(),
            'components': {},
            'alerts': [],
        }

        for component_name, check_func in self.components.items():
            try:
                result = check_func()
            except Exception as e:
                self.logger.error(f"Health check failed for {component_name}: {e}")
                result = {'status': 'error', 'message': str(e)}

            result['timestamp'] = datetime.now().isoformat()
            health_data['components'][component_name] = result

            if result['status'] != 'healthy':
                health_data['alerts'].append(
                    f"Component {component_name}: {result.get('message', 'Unknown issue')}"
                )
                if component_name in self.critical_components:
                    health_data['status'] = 'unhealthy'
                elif health_data['status'] == 'healthy':
                    health_data['status'] = 'degraded'

        health_data['check_duration'] = round(time.time() - start_time, 3)
        return health_data

    def _check_rasterizer(self) -> Dict[str, Any]:
        path = shutil.which(self.settings.rasterizer_binary)
        if path is None:
            return {
                'status': 'unhealthy',
                'message': f"'{self.settings.rasterizer_binary}' not found on PATH (install poppler-utils)",
            }
        return {'status': 'healthy', 'info': {'path': path, 'dpi': self.settings.rasterizer_dpi}}

    def _check_api_key(self) -> Dict[str, Any]:
        if not self.settings.openai_api_key:
            return {'status': 'unhealthy', 'message': 'OPENAI_API_KEY is not set'}
        return {'status': 'healthy'}

    def _check_temp_dir(self) -> Dict[str, Any]:
        temp_dir = self.settings.temp_dir
        os.makedirs(temp_dir, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=temp_dir):
            pass
        return {'status': 'healthy', 'info': {'path': temp_dir}}

    @staticmethod
    def _usage_status(percent: float) -> str:
        if percent > 90:
            return 'unhealthy'
        if percent > 80:
            return 'degraded'
        return 'healthy'

    def _check_disk_space(self) -> Dict[str, Any]:
        """Rendered pages and reports are written under the base directory."""
        usage = psutil.disk_usage(self.settings.base_dir)
        return {
            'status': self._usage_status(usage.percent),
            'message': f"Disk {usage.percent:.1f}% used, {usage.free / GIB:.1f} GiB free",
            'info': {'free_gb': round(usage.free / GIB, 2), 'used_percent': usage.percent},
        }

    def _check_memory_usage(self) -> Dict[str, Any]:
        """Page images for a whole statement are held in memory at once."""
        memory = psutil.virtual_memory()
        return {
            'status': self._usage_status(memory.percent),
            'message': f"Memory {memory.percent:.1f}% used",
            'info': {'available_gb': round(memory.available / GIB, 2), 'used_percent': memory.percent},
        }

    def _check_broker(self) -> Dict[str, Any]:
        """Only background mode needs the broker."""
        try:
            client = redis.Redis.from_url(
                self.settings.celery_broker_url,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            client.ping()
        except redis.RedisError:
            return {
                'status': 'degraded',
                'message': 'Cannot connect to Celery broker; background mode unavailable',
            }
        return {'status': 'healthy'}
