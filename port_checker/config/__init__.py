from .config_manager import ConfigManager, ConfigSchema

__all__ = ['ConfigManager', 'ConfigSchema']
