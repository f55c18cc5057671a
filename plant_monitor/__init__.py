"""
Plant Monitor - sensor dashboard backend with disease detection
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Plant Monitor Team"

# Core modules
from . import config
from . import schema
from . import bridge
from . import connectivity
from . import simulator
from . import sources
from . import inference
from . import motor
from . import controller

# Services
from . import weather
from . import chat

__all__ = [
    # Core
    'config', 'schema', 'bridge', 'connectivity', 'simulator', 'sources',
    'inference', 'motor', 'controller',
    # Services
    'weather', 'chat',
]
