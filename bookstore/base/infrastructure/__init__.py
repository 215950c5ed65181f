from .in_memory_gateway import *  # NOQA
from .mapper import *  # NOQA
from .table_gateway import *  # NOQA
