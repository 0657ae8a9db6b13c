"""Configuration module for haul-engine."""

from haulengine.config.schema import Config
from haulengine.config.validator import ConfigValidator

__all__ = ["Config", "ConfigValidator"]
