"""
Standard exit codes for gitstart.

Following Unix/POSIX conventions for command-line tools, except that
usage errors exit with 1 like the rest of the user-facing failures.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 1          # Wrong arguments

# Application-specific exit codes (64-113 are typically available)
TOOL_ERROR = 65          # svn / git svn / git invocation failed
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
DATA_ERROR = 70          # Unparseable tool output or cyclic externals
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'FileExistsError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'TOMLDecodeError': CONFIG_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class UsageError(CommandError):
    """Raised when the command line has the wrong number of arguments."""
    def __init__(self, message: str = "Usage: gitstart <svn-repository> <target-dir>"):
        super().__init__(message, USAGE_ERROR)


class PreconditionError(CommandError):
    """Raised when the filesystem is not in the state a step requires."""
    def __init__(self, message: str):
        super().__init__(message, GENERAL_ERROR)


class ToolInvocationError(CommandError):
    """Raised when svn or git exits abnormally or prints something unparseable."""
    def __init__(self, message: str, command: Optional[str] = None,
                 returncode: Optional[int] = None, output: str = ""):
        super().__init__(message, TOOL_ERROR)
        self.command = command
        self.returncode = returncode
        self.output = output


class ParseError(CommandError):
    """Raised when an svn:externals listing is malformed."""
    def __init__(self, message: str, block: str = ""):
        super().__init__(message, DATA_ERROR)
        self.block = block


class CycleDetectedError(CommandError):
    """Raised when an external refers back to a repository already being cloned."""
    def __init__(self, url: str, path: tuple = ()):
        chain = " -> ".join(list(path) + [url])
        super().__init__(f"Cyclic svn:externals reference: {chain}", DATA_ERROR)
        self.url = url
        self.path = path


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)
