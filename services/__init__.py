# services/__init__.py
from . import account
from . import catalog
from . import mutations

__all__ = ["account", "catalog", "mutations"]
