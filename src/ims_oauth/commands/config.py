"""Config commands -- view and modify global configuration.

Provides the ``ims-oauth config`` sub-command group for reading,
updating, and resetting the user's global configuration file
(:class:`~ims_oauth.models.GlobalConfig`): the default IMS environment,
the login timeout, and the browser used to open the login page.
"""

from __future__ import annotations

import typer

from ims_oauth.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        ims-oauth config show
        ims-oauth --json config show
    """
    from ims_oauth.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key: env, timeout, or browser."),
    value: str = typer.Argument(help="Value to set ('none' clears the browser)."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the existing field and the
    result is validated against :class:`~ims_oauth.models.GlobalConfig`
    before saving.

    Raises:
        typer.Exit: With code 2 if the key is unknown or the value is
            invalid.

    Example::

        ims-oauth config set env stage
        ims-oauth config set timeout 300
        ims-oauth config set browser firefox
    """
    from pydantic import ValidationError

    from ims_oauth.config import load_global_config, save_global_config
    from ims_oauth.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    if key not in data:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = data[key]
    coerced: object = value
    if isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    elif key == "browser" and value.lower() in ("", "none", "default"):
        coerced = None

    data[key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is given.

    Example::

        ims-oauth config reset
        ims-oauth config reset --force
    """
    from ims_oauth.config import save_global_config
    from ims_oauth.models import GlobalConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
