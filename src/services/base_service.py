"""Base service architecture shared by the AI provider services."""
from typing import Any, Dict, Optional

import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from utils.logger import logger


class ServiceStatus(Enum):
    """Service status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class ServiceMetrics:
    """Service metrics data structure."""
    service_name: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    average_response_time: float = 0.0
    last_request_time: Optional[datetime] = None
    last_success_time: Optional[datetime] = None
    last_failure_time: Optional[datetime] = None
    status: ServiceStatus = ServiceStatus.UNKNOWN
    custom_metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Calculate success rate percentage."""
        if self.total_requests == 0:
            return 0.0
        return (self.successful_requests / self.total_requests) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "service_name": self.service_name,
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "success_rate": self.success_rate,
            "average_response_time": self.average_response_time,
            "last_request_time": self.last_request_time.isoformat() if self.last_request_time else None,
            "last_success_time": self.last_success_time.isoformat() if self.last_success_time else None,
            "last_failure_time": self.last_failure_time.isoformat() if self.last_failure_time else None,
            "status": self.status.value,
            "custom_metrics": self.custom_metrics,
        }


class BaseService(ABC):
    """Base service class providing request tracking for provider services."""

    def __init__(self, service_name: str, **kwargs):
        """Initialize base service.

        Args:
            service_name: Unique name for the service
            **kwargs: Additional service-specific configuration
        """
        self.service_name = service_name
        self.config = kwargs
        self.metrics = ServiceMetrics(service_name=service_name)
        self._lock = threading.RLock()

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the service has what it needs to make calls."""

    def get_status(self) -> ServiceStatus:
        """Get current service status."""
        return self.metrics.status

    def get_metrics(self) -> ServiceMetrics:
        """Get service metrics."""
        with self._lock:
            return self.metrics

    @contextmanager
    def track_request(self, operation_name=None):
        """Context manager to track request metrics."""
        start_time = time.time()
        request_time = datetime.now(timezone.utc)

        with self._lock:
            self.metrics.total_requests += 1
            self.metrics.last_request_time = request_time
            if operation_name:
                operation_key = f"operation_{operation_name}"
                self.metrics.custom_metrics[operation_key] = (
                    self.metrics.custom_metrics.get(operation_key, 0) + 1
                )

        try:
            yield
        except Exception as e:
            with self._lock:
                self.metrics.failed_requests += 1
                self.metrics.last_failure_time = request_time
                self._update_average_response_time(time.time() - start_time)
                if self.metrics.success_rate < 80:
                    self.metrics.status = ServiceStatus.UNHEALTHY
                elif self.metrics.success_rate < 95:
                    self.metrics.status = ServiceStatus.DEGRADED

            logger.error(f"Request failed in {self.service_name}: {str(e)}")
            raise

        with self._lock:
            self.metrics.successful_requests += 1
            self.metrics.last_success_time = request_time
            self._update_average_response_time(time.time() - start_time)

            if self.metrics.success_rate >= 95:
                self.metrics.status = ServiceStatus.HEALTHY
            elif self.metrics.success_rate >= 80:
                self.metrics.status = ServiceStatus.DEGRADED
            else:
                self.metrics.status = ServiceStatus.UNHEALTHY

    def _update_average_response_time(self, response_time: float) -> None:
        """Update average response time using exponential moving average."""
        if self.metrics.average_response_time == 0:
            self.metrics.average_response_time = response_time
        else:
            alpha = 0.1
            self.metrics.average_response_time = (
                alpha * response_time + (1 - alpha) * self.metrics.average_response_time
            )

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.service_name})"

    def __repr__(self) -> str:
        return self.__str__()


class ServiceRegistry:
    """Registry of provider service instances shared by requests and workers."""

    _services: Dict[str, BaseService] = {}
    _lock = threading.RLock()

    @classmethod
    def get_or_create(cls, service_class, **settings) -> BaseService:
        """Return the registered service built with ``settings``.

        A service whose settings changed is replaced, and its metrics start over.
        """
        key = service_class.__name__
        with cls._lock:
            service = cls._services.get(key)
            if service is None or service.config != settings:
                service = service_class(**settings)
                cls._services[key] = service
                logger.info(f"Registered service: {service.service_name}")
            return service

    @classmethod
    def get_all_services(cls) -> Dict[str, BaseService]:
        """Get all registered services keyed by service name."""
        with cls._lock:
            return {s.service_name: s for s in cls._services.values()}

    @classmethod
    def get_health_status(cls) -> Dict[str, Dict[str, Any]]:
        """Availability, status and metrics of every registered service."""
        status = {}
        for name, service in cls.get_all_services().items():
            metrics = service.get_metrics()
            status[name] = {
                "available": service.is_available(),
                "status": service.get_status().value,
                "metrics": metrics.to_dict(),
            }
        return status

    @classmethod
    def clear(cls) -> None:
        """Forget every registered service."""
        with cls._lock:
            cls._services.clear()
