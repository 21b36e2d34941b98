__all__ = ["logging", "strings", "exceptions", "config", "sequences", "parallel"]


from .logging import log
from .strings import *
from .exceptions import *
from . import config
