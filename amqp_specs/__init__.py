"""AMQP 0.9.1 protocol specification model, as implemented by RabbitMQ."""

from importlib.metadata import PackageNotFoundError, version

from .parser import SpecsError as SpecsError
from .parser import load as load
from .specs import *
from .types import *

try:
    __version__ = version("amqp-specs")
except PackageNotFoundError:
    __version__ = "(local)"
