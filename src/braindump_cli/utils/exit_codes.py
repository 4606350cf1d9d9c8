"""
Exit codes for braindump.

Semantic exit codes so scripts wrapping the CLI can tell what happened.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or a refused transition
ERROR_INVALID_ARGS = 2

# Classification or timetable service error (unreachable, bad payload, ...)
ERROR_SERVICE = 4

# Resource not found (no plan, no history entry for a date)
ERROR_NOT_FOUND = 5


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_SERVICE: "ERROR_SERVICE",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
    }
    return code_names.get(code, f"UNKNOWN({code})")


def get_exit_code_description(code: int) -> str:
    """Get a human-readable description of an exit code."""
    descriptions = {
        SUCCESS: "Command executed successfully",
        ERROR_GENERAL: "A general error occurred",
        ERROR_INVALID_ARGS: "Invalid arguments or the plan is not in the right stage",
        ERROR_SERVICE: "Classification service error - check connection and retry",
        ERROR_NOT_FOUND: "Nothing recorded for that request",
    }
    return descriptions.get(code, "Unknown error")
