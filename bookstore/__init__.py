# (c) Nelen & Schuurmans

from .base.application import *  # NOQA
from .base.domain import *  # NOQA
from .base.infrastructure import *  # NOQA
from .domain import *  # NOQA
from .application import *  # NOQA
from .config import *  # NOQA
from .gateways import *  # NOQA

# fmt: off
__version__ = '0.1.0.dev0'
# fmt: on
