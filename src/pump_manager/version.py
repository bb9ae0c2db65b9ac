"""Version metadata for PumpManager."""

__app_name__ = "PumpManager"
__company__ = "Gestão de Bombas"
__version__ = "0.4.0"
