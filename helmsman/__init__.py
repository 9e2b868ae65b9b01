__title__ = 'helmsman'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.1.0"

from .fields import *
from .config import *
from .schema import *
from .dispatch import *
from .standard import *
from .version import *
from .faults import *
from .app import *

__all__ = (
    "__title__",
    "__author__",
    "__license__",
    "__version__",
)

# Load the exposed API of the fields
__all__ += fields.__all__  # type: ignore[attr-defined]
# Load the exposed API of the configuration types
__all__ += config.__all__  # type: ignore[attr-defined]
# Load the exposed API of the schema builder
__all__ += schema.__all__  # type: ignore[attr-defined]
# Load the exposed API of the dispatcher
__all__ += dispatch.__all__  # type: ignore[attr-defined]
# Load the exposed API of the built-in entries
__all__ += standard.__all__  # type: ignore[attr-defined]
# Load the exposed API of the build metadata
__all__ += version.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the application
__all__ += app.__all__  # type: ignore[attr-defined]
