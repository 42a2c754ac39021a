"""Standard exit codes for wblocks.

This module defines standard exit codes used across the wblocks CLI
for consistent error reporting and scripting support.
"""


class ExitCode:
    """Standard exit codes for wblocks.

    These codes follow common Unix conventions where possible:
    - 0: Success
    - 1: General error
    - 130: Terminated by Ctrl+C (SIGINT)

    wblocks-specific codes:
    - 2: Configuration error
    - 3: Script error (scripts directory missing, or a script failed
      under ``scripts check``)
    - 4: Shell error (process could not be created)
    - 7: Invalid argument
    - 8: Not found
    """

    # Standard success
    SUCCESS = 0

    # General errors
    GENERAL_ERROR = 1

    # wblocks-specific errors
    CONFIGURATION_ERROR = 2
    SCRIPT_ERROR = 3
    SHELL_ERROR = 4
    INVALID_ARGUMENT = 7
    NOT_FOUND = 8

    # Signal-based exits (128 + signal number)
    CANCELLED = 130  # Ctrl+C (SIGINT = 2)

    @classmethod
    def get_name(cls, code: int) -> str:
        """Get the name of an exit code.

        Args:
            code: The exit code value

        Returns:
            Human-readable name for the exit code
        """
        names = {
            cls.SUCCESS: "SUCCESS",
            cls.GENERAL_ERROR: "GENERAL_ERROR",
            cls.CONFIGURATION_ERROR: "CONFIGURATION_ERROR",
            cls.SCRIPT_ERROR: "SCRIPT_ERROR",
            cls.SHELL_ERROR: "SHELL_ERROR",
            cls.INVALID_ARGUMENT: "INVALID_ARGUMENT",
            cls.NOT_FOUND: "NOT_FOUND",
            cls.CANCELLED: "CANCELLED",
        }
        return names.get(code, f"UNKNOWN({code})")

    @classmethod
    def get_description(cls, code: int) -> str:
        """Get the description of an exit code.

        Args:
            code: The exit code value

        Returns:
            Human-readable description for the exit code
        """
        descriptions = {
            cls.SUCCESS: "Operation completed successfully",
            cls.GENERAL_ERROR: "An unexpected error occurred",
            cls.CONFIGURATION_ERROR: "Configuration error or invalid config file",
            cls.SCRIPT_ERROR: "Script directory or script execution error",
            cls.SHELL_ERROR: "Shell process could not be started",
            cls.INVALID_ARGUMENT: "Invalid command-line argument",
            cls.NOT_FOUND: "Requested resource not found",
            cls.CANCELLED: "Operation cancelled by user",
        }
        return descriptions.get(code, f"Unknown exit code: {code}")
