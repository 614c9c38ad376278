"""CLI constants: command names, help text and exit codes."""


class CLIDefaults:
    """Default CLI values."""

    VERSION = "0.1.0"
    EXIT_SUCCESS = 0
    EXIT_ERROR = 1
    EXIT_INVALID_INPUT = 2
    EXIT_ACCESS_DENIED = 3
    EXIT_NOT_FOUND = 4
    EXIT_INTERRUPTED = 130


class CLICommands:
    """CLI command names."""

    BROWSE = "browse"
    SEARCH = "search"
    GAME = "game"
    TOP = "top"
    HISTORY = "history"
    WISHLIST = "wishlist"
    ADMIN = "admin"
    ADMIN_STATS = "stats"
    ADMIN_USERS = "users"
    ADMIN_REVIEWS = "reviews"
    ADMIN_AUDIT_LOGS = "audit-logs"


class CLIHelp:
    """CLI help text."""

    APP_NAME = "checkpointer"
    APP_DESCRIPTION = "Browse the Checkpointer game catalog, play history and wishlist."
    APP_STYLE = "rich"
    VERSION_TEXT = "Checkpointer v{version}"

    BROWSE_HELP = "Browse the catalog one page at a time."
    SEARCH_HELP = "Search games by title."
    GAME_HELP = "Show a single game."
    TOP_HELP = "Show top-rated or trending games."
    HISTORY_HELP = "Show a user's play history."
    WISHLIST_HELP = "Show your wishlist."
    ADMIN_HELP = "Admin back office (requires the admin role)."

    ACCESS_DENIED = "Access denied: this command requires the admin role."
    NOT_FOUND = "Not found: {message}"
    INVALID_INPUT = "Invalid input: {message}"
    API_ERROR = "API error: {message}"
    INTERRUPTED = "Command interrupted by user"
    NOTHING_FOUND = "No games found matching your criteria"
