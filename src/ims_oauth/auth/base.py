"""Abstract base class for login flow plugins.

Each login flow (CLI-hosted OAuth2, browser-redirect OAuth2,
server-to-server client credentials) is a :class:`LoginPlugin` bound to
one :class:`~ims_oauth.models.FlowConfig` variant. The variant's required
fields decide whether the plugin can handle a given configuration
mapping, so the registry can pick a flow without the caller naming one.

To implement a new flow, subclass :class:`LoginPlugin`, set
:attr:`~LoginPlugin.config_model` and :attr:`~LoginPlugin.flow_type`, and
implement :meth:`~LoginPlugin.ims_login`.

See Also:
    :mod:`ims_oauth.auth.manager` for plugin registration and selection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional

from pydantic import ValidationError

from ims_oauth.exceptions import ConfigError, MissingPropertiesError
from ims_oauth.models import FlowConfig

if TYPE_CHECKING:
    from ims_oauth.ims import ImsClient


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


class LoginPlugin(ABC):
    """Abstract base class for login flow plugins.

    Subclasses provide:

    1. :attr:`config_model` -- the configuration variant the flow needs.
    2. :attr:`flow_type` -- a unique identifier (e.g. ``"cli"``).
    3. :meth:`ims_login` -- the flow itself.
    """

    config_model: ClassVar[type[FlowConfig]]

    @property
    @abstractmethod
    def flow_type(self) -> str:
        """Return the unique flow identifier this plugin handles."""
        ...

    def required_keys(self) -> list[str]:
        """Return the configuration keys this flow cannot run without."""
        return self.config_model.required_keys()

    def missing_keys(self, config: Optional[Mapping[str, Any]]) -> list[str]:
        """Return the required keys absent from *config* (``None`` and empty values count as absent)."""
        if not config:
            return self.required_keys()
        return [key for key in self.required_keys() if _is_empty(config.get(key))]

    def supports(self, config: Optional[Mapping[str, Any]]) -> bool:
        """Return True if *config* carries every field this flow requires."""
        return not self.missing_keys(config)

    def can_support(self, config: Optional[Mapping[str, Any]]) -> FlowConfig:
        """Validate *config* for this flow.

        Returns:
            The validated configuration variant.

        Raises:
            MissingPropertiesError: If required fields are absent.
            ConfigError: If the fields are present but invalid.
        """
        missing = self.missing_keys(config)
        if missing:
            raise MissingPropertiesError(missing)
        assert config is not None
        try:
            return self.config_model.model_validate(dict(config))
        except ValidationError as exc:
            raise ConfigError(f"Invalid {self.flow_type} login configuration: {exc}") from exc

    @abstractmethod
    def ims_login(self, ims: ImsClient, config: Mapping[str, Any]) -> Any:
        """Run the flow and return the resulting code or token.

        Implementations must call :meth:`can_support` before any network
        or UI side effect.

        Args:
            ims: IMS client used for token exchanges.
            config: The raw configuration mapping.

        Raises:
            MissingPropertiesError: If the configuration is incomplete.
        """
        ...
