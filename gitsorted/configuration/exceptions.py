"""Contains exceptions raised when reconciling application configuration."""


class RequiredConfigurationElementError(Exception):
    """Raised when a required configuration element is missing."""

    def __init__(self, name: str, cli_name: str, env_name: str) -> None:
        """Initializes the exception with the name of the missing element."""
        super().__init__(f"Missing required configuration element: {name} (command line option {cli_name}, environment variable {env_name})")
        self.name = name
        self.cli_name = cli_name
        self.env_name = env_name


class InvalidConfigurationElementError(Exception):
    """Raised when a configuration element is present but unusable."""

    def __init__(self, name: str, reason: str) -> None:
        """Initializes the exception with the name of the element and why it was rejected."""
        super().__init__(f"Invalid configuration element {name}: {reason}")
        self.name = name
        self.reason = reason
