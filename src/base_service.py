"""BaseService: the unit of work driven by :class:`service_runner.ServiceRunner`.

The runner only needs an object with three hooks:

  1. ``on_start`` – called once before the first iteration,
  2. ``execute``  – called on every iteration inside the execution window,
  3. ``on_stop``  – called once after a stop request has been observed.

Anything satisfying :class:`UnitOfWork` can be run. ``BaseService`` is the
convenience base class for concrete services; it carries an injected logger
bound with the service name so every line can be traced back to its service.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from loguru import logger as default_logger


@runtime_checkable
class UnitOfWork(Protocol):
    def on_start(self) -> None: ...

    def execute(self) -> None: ...

    def on_stop(self) -> None: ...


class BaseService(ABC):
    """Abstract base class for concrete polling services."""

    def __init__(self, logger=None):
        self.logger = (logger or default_logger).bind(service=self.name)

    @property
    def name(self) -> str:
        return self.__class__.__name__

    # --------------------------------------------------------
    # To be implemented by subclasses
    # --------------------------------------------------------
    @abstractmethod
    def on_start(self) -> None:
        """Called once when the service is starting."""

    @abstractmethod
    def execute(self) -> None:
        """Perform **one** iteration of work.

        Exceptions are not caught by the runner; they end the run.
        """

    @abstractmethod
    def on_stop(self) -> None:
        """Called once when the service is stopping."""
