"""Lists the user databases on the server."""

from mssql_exporter.core.exceptions import ConnectionStateError, EnumerationError, QueryError
from mssql_exporter.core.protocols.connection import DatabaseConnection
from mssql_exporter.domains.collection.types import SYSTEM_DATABASES

ENUMERATION_QUERY = (
    "SELECT name FROM sys.databases "
    "WHERE name NOT IN ('master', 'tempdb', 'model', 'msdb')"
)


class DatabaseEnumerator:
    """Runs the enumeration query once on a server-level connection."""

    def __init__(self, query: str = ENUMERATION_QUERY) -> None:
        self.query = query

    async def list(self, connection: DatabaseConnection) -> list[str]:
        """Return target database names in server order, system databases excluded.

        Raises:
            EnumerationError: The listing query failed.
        """
        try:
            rows = await connection.execute(self.query)
        except (QueryError, ConnectionStateError) as e:
            raise EnumerationError(f"Failed to list databases: {e}") from e

        names: list[str] = []
        for row in rows:
            if not row or row[0] is None:
                continue
            name = str(row[0])
            if name in SYSTEM_DATABASES or name in names:
                continue
            names.append(name)
        return names
