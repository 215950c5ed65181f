from .sql_builder import *  # NOQA
from .sql_provider import *  # NOQA
from .sqlalchemy_sync_sql_database import *  # NOQA
from .sync_sql_gateway import *  # NOQA
