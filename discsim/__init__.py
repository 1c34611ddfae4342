# Discrete Simulation Framework Package
# Use relative imports inside the package

from .core_blocks import *
from .source_blocks import *
from .processing_blocks import *
from .dynamic_blocks import *
from .controllers import *
from .simulation_engine import *

from . import (controllers, core_blocks, dynamic_blocks, processing_blocks,
               simulation_engine, source_blocks)

__all__ = (core_blocks.__all__ + source_blocks.__all__ + processing_blocks.__all__
           + dynamic_blocks.__all__ + controllers.__all__ + simulation_engine.__all__)

__version__ = '1.0.0'
