from .db import Database
from . import crud

__all__ = ["Database", "crud"]
