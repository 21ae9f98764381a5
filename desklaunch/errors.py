"""Fatal launcher errors and the exit codes they map to."""


class LaunchError(Exception):
    """Base class for errors that abort the launch."""

    exit_code = 1


class ConfigError(LaunchError):
    """The sandbox environment is missing something the launcher needs."""


class UsageError(LaunchError):
    exit_code = 2


class BinaryNotFoundError(LaunchError):
    exit_code = 127


class BinaryNotExecutableError(LaunchError):
    exit_code = 126
