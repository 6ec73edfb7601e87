import duckdb

class DatabaseManager:
    """Lazily opened DuckDB connection for one analysis run."""
    def __init__(self, db_path: str, memory_limit=None):
        self.db_path = str(db_path)
        self.memory_limit = memory_limit
        self.conn = None

    def connect(self):
        if not self.conn:
            self.conn = duckdb.connect(self.db_path)
            if self.memory_limit:
                self.conn.execute(f"SET memory_limit = '{self.memory_limit}'")
        return self.conn

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None
