"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class BankConfig(BaseSettings):
    """Simple bank configuration"""
    
    # Storage configuration
    data_url: str = "data/accounts.json"  # JSON file path, sqlite:///path or memory://
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    static_dir: Optional[str] = None  # Browser UI directory served at /
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    class Config:
        env_prefix = "SIMPLE_BANK_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = BankConfig()


def get_config() -> BankConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BankConfig:
    """Reload configuration from environment"""
    global config
    config = BankConfig()
    return config
