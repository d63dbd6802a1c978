"""Plugin-based login flows for ims-oauth.

The main entry points are:

- :class:`LoginPlugin` -- abstract base class for a login flow.
- :class:`LoginManager` -- ordered registry that picks the first flow whose
  required configuration is present.
- :func:`create_default_manager` -- a manager loaded with the built-in
  flows.

Typical usage::

    from ims_oauth.auth import create_default_manager

    manager = create_default_manager()
    result = manager.ims_login({"$cli.bare-output": True, "env": "prod"})
"""

from ims_oauth.auth.base import LoginPlugin
from ims_oauth.auth.manager import LoginManager, create_default_manager

__all__ = [
    "LoginPlugin",
    "LoginManager",
    "create_default_manager",
]
