"""Exceptions raised by the script runtime."""


class RuntimeShimError(Exception):
    """Base exception for script runtime errors."""
    
    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
    
    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path: {self.path})"
        return self.message


class ScriptDirectoryError(RuntimeShimError):
    """Raised when the scripts directory cannot be listed.
    
    Nothing can run without a scripts directory, so callers treat this
    as fatal for the whole process.
    """
    pass


class ShellError(RuntimeShimError):
    """Raised when a shell process cannot be created."""
    
    def __init__(
        self,
        message: str,
        command_line: str | None = None,
    ) -> None:
        super().__init__(message)
        self.command_line = command_line
    
    def __str__(self) -> str:
        if self.command_line:
            return f"{self.message} (command: {self.command_line[:200]})"
        return self.message
