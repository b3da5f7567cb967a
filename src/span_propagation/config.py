"""
Tracer configuration loaded from the environment.
"""

from dataclasses import dataclass
from typing import Optional
import logging
import os

from dotenv import load_dotenv

from .errors import ConfigurationError
from .reporters import ConstSampler, LoggingReporter, NullReporter, QueuedReporter, Reporter, Sampler
from .tracer import Tracer

logger = logging.getLogger(__name__)

ENV_PREFIX = "TRACER_"
SUPPORTED_SAMPLER_TYPES = ("const",)
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class TracerConfig:
    """Configuration for building a tracer and its collaborators."""
    service_name: str = "TicketPurchasingSystem"
    sampler_type: str = "const"
    sampler_param: float = 1.0
    log_spans: bool = True
    queue_size: int = 100
    work_scale: float = 1.0

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "TracerConfig":
        """
        Build a configuration from ``TRACER_*`` environment variables.

        A ``.env`` file is loaded first; variables already set in the
        process environment take precedence over it.

        Args:
            dotenv_path: Explicit path to a .env file; searched for when None

        Returns:
            Validated TracerConfig

        Raises:
            ConfigurationError: If a variable cannot be parsed or is out of range
        """
        load_dotenv(dotenv_path)
        defaults = cls()

        config = cls(
            service_name=os.getenv(f"{ENV_PREFIX}SERVICE_NAME", defaults.service_name),
            sampler_type=os.getenv(f"{ENV_PREFIX}SAMPLER_TYPE", defaults.sampler_type).lower(),
            sampler_param=_env_float("SAMPLER_PARAM", defaults.sampler_param),
            log_spans=_env_bool("LOG_SPANS", defaults.log_spans),
            queue_size=_env_int("QUEUE_SIZE", defaults.queue_size),
            work_scale=_env_float("WORK_SCALE", defaults.work_scale),
        )
        config.validate()
        logger.debug(f"Loaded tracer configuration: {config}")
        return config

    def validate(self) -> None:
        """
        Check the configuration values.

        Raises:
            ConfigurationError: If any value is invalid
        """
        if not self.service_name:
            raise ConfigurationError("service_name must not be empty")
        if self.sampler_type not in SUPPORTED_SAMPLER_TYPES:
            raise ConfigurationError(
                f"Unsupported sampler type '{self.sampler_type}', "
                f"expected one of {', '.join(SUPPORTED_SAMPLER_TYPES)}"
            )
        if self.queue_size < 0:
            raise ConfigurationError(f"queue_size must not be negative, got {self.queue_size}")
        if self.work_scale < 0:
            raise ConfigurationError(f"work_scale must not be negative, got {self.work_scale}")

    def new_sampler(self) -> Sampler:
        # const sampler: any non-zero param samples every trace
        return ConstSampler(self.sampler_param != 0)

    def new_reporter(self, delegate: Optional[Reporter] = None) -> Reporter:
        """
        Build the reporter chain described by this configuration.

        Args:
            delegate: Reporter to deliver to; defaults to a LoggingReporter
                when log_spans is set and a NullReporter otherwise

        Returns:
            The delegate, wrapped in a QueuedReporter when queue_size > 0
        """
        if delegate is None:
            delegate = LoggingReporter() if self.log_spans else NullReporter()
        if self.queue_size > 0:
            return QueuedReporter(delegate, queue_size=self.queue_size)
        return delegate

    def new_tracer(self, reporter: Optional[Reporter] = None) -> Tracer:
        """
        Build a tracer from this configuration.

        Args:
            reporter: Delivery reporter passed to new_reporter()
        """
        self.validate()
        return Tracer(
            self.service_name,
            reporter=self.new_reporter(reporter),
            sampler=self.new_sampler(),
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got '{raw}'") from e


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got '{raw}'") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{name} must be a boolean, got '{raw}'")
