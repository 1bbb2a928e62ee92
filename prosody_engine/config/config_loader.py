"""Configuration loader for the prosody engine"""

import yaml
from pathlib import Path
from typing import Any, Dict
import os


CONFIG_DIR = Path(__file__).resolve().parent


class Config:
    """Configuration manager for the prosody engine"""
    
    def __init__(self, config_path: str = None):
        if config_path is None:
            config_path = os.getenv('PROSODY_CONFIG')
        if config_path is None:
            env = os.getenv('PROSODY_ENV', 'development')
            # Try environment-specific config first, fall back to default
            env_config = CONFIG_DIR / f"config.{env}.yaml"
            if env_config.exists():
                config_path = str(env_config)
            else:
                config_path = str(CONFIG_DIR / "config.yaml")
        
        self.config_path = Path(config_path)
        self._config = self._load_config()
    
    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")
        
        with open(self.config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    
    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation
        
        Args:
            key: Configuration key in dot notation (e.g., 'prosody.min_pause_ms')
            default: Default value if key not found
            
        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config
        
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        
        return value if value is not None else default
    
    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access"""
        return self.get(key)
    
    def validate(self) -> None:
        """Validate configuration values"""
        percentile = self.get('prosody.dynamic_pause_percentile')
        if percentile is not None and not 0 < percentile < 1:
            raise ValueError(f"Invalid dynamic_pause_percentile: {percentile}, must be in (0, 1)")
        
        min_pause = self.get('prosody.min_pause_ms')
        if min_pause is not None and min_pause <= 0:
            raise ValueError(f"Invalid min_pause_ms: {min_pause}, must be positive")
        
        threshold = self.get('pitch.confidence_threshold')
        if threshold is not None and not 0 <= threshold <= 1:
            raise ValueError(f"Invalid confidence_threshold: {threshold}, must be in [0, 1]")
        
        # Autocorrelation is O(N^2) per frame and must fit inside one frame period
        buffer_size = self.get('audio.buffer_size')
        if buffer_size is not None and not 256 <= buffer_size <= 8192:
            raise ValueError(f"Invalid buffer_size: {buffer_size}, must be in [256, 8192]")

        min_f0 = self.get('pitch.min_frequency')
        max_f0 = self.get('pitch.max_frequency')
        if min_f0 is not None and max_f0 is not None and not 0 < min_f0 < max_f0:
            raise ValueError(f"Invalid pitch range: {min_f0}-{max_f0} Hz, must satisfy 0 < min < max")


# Global config instance
config = Config()
