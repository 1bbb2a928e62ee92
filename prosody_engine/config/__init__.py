"""Configuration loading"""

from prosody_engine.config.config_loader import Config, config

__all__ = ['Config', 'config']
