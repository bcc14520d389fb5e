
__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'requisite'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .tokens import *
from .types import *
from .canon import *
from .assignments import *
from .requisition import *
from .markup import *
from .faults import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the tokens
__all__ += tokens.__all__  # type: ignore[attr-defined]
# Load the exposed API of the types
__all__ += types.__all__  # type: ignore[attr-defined]
# Load the exposed API of the canon
__all__ += canon.__all__  # type: ignore[attr-defined]
# Load the exposed API of the assignments
__all__ += assignments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the requisition
__all__ += requisition.__all__  # type: ignore[attr-defined]
# Load the exposed API of the markup
__all__ += markup.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
