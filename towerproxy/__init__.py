"""towerproxy - delayed webhook relay for Watchtower"""
__version__ = "0.1.0"
