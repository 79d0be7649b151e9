"""CLI context management for the agent and shared state."""

from dataclasses import dataclass, field

from nlquery.agent.engine import QueryAgent
from nlquery.config import Settings
from nlquery.core.connection import DatabaseConnection


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Manages agent lifecycle and output preferences.
    """

    settings: Settings
    json_output: bool
    _agent: QueryAgent | None = field(default=None, init=False, repr=False)

    def get_agent(self) -> QueryAgent:
        """Get or create the agent (lazy initialization).

        Returns:
            QueryAgent instance
        """
        if self._agent is None:
            self._agent = QueryAgent.from_settings(self.settings)
        return self._agent

    def get_connection(self) -> DatabaseConnection:
        """A standalone connection, for commands that do not need the model."""
        return DatabaseConnection(self.settings.database_url, echo=self.settings.echo_sql)

    def close(self) -> None:
        """Shut down the agent if it was started."""
        if self._agent is not None:
            self._agent.close()
            self._agent = None
