"""
MISSION: The Ingest Layer.
Loads the den relocation file and the animal roster into DuckDB and
normalises their headers into the canonical `locations` and `animals` tables.
"""
import os
from datetime import datetime

# Canonical column -> accepted source headers (first hit wins)
LOCATION_COLUMNS = {
    "animal_id": ["animal_id", "AnimalID", "Animal ID", "id", "ID"],
    "date": ["date", "Date", "obs_date", "DATE"],
    "latitude": ["latitude", "Latitude", "lat", "Lat", "LAT"],
    "longitude": ["longitude", "Longitude", "lon", "long", "Long", "LON"],
}

ANIMAL_COLUMNS = {
    "animal_id": ["animal_id", "AnimalID", "Animal ID", "id", "ID"],
    "sex": ["sex", "Sex", "SEX"],
    "trial": ["trial", "Trial", "cohort", "release_trial"],
    "survived": ["survived", "Survived", "alive", "fate", "survival"],
    "release_lat": ["release_lat", "ReleaseLat", "rel_lat"],
    "release_lon": ["release_lon", "ReleaseLon", "rel_lon"],
}

REQUIRED_LOCATION_COLUMNS = ["animal_id", "date", "latitude", "longitude"]
REQUIRED_ANIMAL_COLUMNS = ["animal_id"]


class TrackingLoader:
    def __init__(self, db_conn):
        self.db = db_conn
        self._setup_manifest()

    def _setup_manifest(self):
        self.db.execute("""
            CREATE TABLE IF NOT EXISTS ingest_manifest (
                source_file TEXT, table_name TEXT,
                row_count BIGINT, ingested_at TIMESTAMP
            )
        """)

    def _load_raw(self, csv_path, raw_table):
        if not os.path.exists(csv_path):
            raise FileNotFoundError(f"Input file not found: {csv_path}")

        safe_path = str(csv_path).replace("'", "''")
        self.db.execute(f"""
            CREATE OR REPLACE TABLE {raw_table} AS
            SELECT * FROM read_csv_auto('{safe_path}', all_varchar=True, header=True)
        """)
        return [c[1] for c in self.db.execute(f"PRAGMA table_info('{raw_table}')").fetchall()]

    def _resolve_columns(self, cols, mapping, required, source):
        """Picks the source header for each canonical column."""
        resolved = {}
        for target, sources in mapping.items():
            found = next((s for s in sources if s in cols), None)
            if found is None and target in required:
                raise ValueError(
                    f"{source}: no column for '{target}' (tried {sources}, found {cols})"
                )
            if found is None:
                print(f"    ⚠️ {source}: no '{target}' column, filling with NULL")
            resolved[target] = found
        return resolved

    def _record(self, source_file, table_name):
        cnt = self.db.execute(f"SELECT count(*) FROM {table_name}").fetchone()[0]
        self.db.execute("INSERT INTO ingest_manifest VALUES (?, ?, ?, ?)",
                        (os.path.basename(str(source_file)), table_name, cnt, datetime.now()))
        return cnt

    @staticmethod
    def _date_parse(col):
        return f"""
            COALESCE(
                try_cast(trim("{col}") AS DATE),
                try_cast(try_cast(trim("{col}") AS TIMESTAMP) AS DATE),
                try_cast(try_strptime(trim("{col}"), '%m/%d/%Y') AS DATE),
                try_cast(try_strptime(trim("{col}"), '%d.%m.%Y') AS DATE)
            )"""

    def load_locations(self, csv_path):
        """Loads den relocations into the canonical `locations` table."""
        print(f"Loading relocations from {csv_path}...")
        cols = self._load_raw(csv_path, "locations_raw")
        src = self._resolve_columns(cols, LOCATION_COLUMNS, REQUIRED_LOCATION_COLUMNS, "locations")

        self.db.execute(f"""
            CREATE OR REPLACE TABLE locations AS
            SELECT DISTINCT * FROM (
                SELECT
                    trim("{src['animal_id']}") AS animal_id,
                    {self._date_parse(src['date'])} AS date,
                    try_cast("{src['latitude']}" AS DOUBLE) AS latitude,
                    try_cast("{src['longitude']}" AS DOUBLE) AS longitude
                FROM locations_raw
            )
            WHERE animal_id IS NOT NULL AND animal_id != ''
              AND date IS NOT NULL
              AND latitude IS NOT NULL AND longitude IS NOT NULL
            ORDER BY animal_id, date
        """)

        raw_cnt = self.db.execute("SELECT count(*) FROM locations_raw").fetchone()[0]
        cnt = self._record(csv_path, "locations")
        if cnt < raw_cnt:
            print(f"    ⚠️ Dropped {raw_cnt - cnt} incomplete or duplicate relocations")
        print(f"    → {cnt} relocations loaded.")
        return cnt

    def load_animals(self, csv_path):
        """Loads the animal roster into the canonical `animals` table."""
        print(f"Loading animal roster from {csv_path}...")
        cols = self._load_raw(csv_path, "animals_raw")
        src = self._resolve_columns(cols, ANIMAL_COLUMNS, REQUIRED_ANIMAL_COLUMNS, "animals")

        def col_or_null(target, expr):
            return expr.format(c=src[target]) if src[target] else "NULL"

        sex_sql = col_or_null("sex", """
            CASE
                WHEN upper(trim("{c}")) IN ('M', 'MALE') THEN 'M'
                WHEN upper(trim("{c}")) IN ('F', 'FEMALE') THEN 'F'
                ELSE NULL
            END""")
        survived_sql = col_or_null("survived", """
            CASE
                WHEN lower(trim("{c}")) IN ('1', '1.0', 'true', 't', 'yes', 'y', 'alive') THEN 1
                WHEN lower(trim("{c}")) IN ('0', '0.0', 'false', 'f', 'no', 'n', 'dead') THEN 0
                ELSE NULL
            END""")

        self.db.execute(f"""
            CREATE OR REPLACE TABLE animals AS
            SELECT
                trim("{src['animal_id']}") AS animal_id,
                {sex_sql} AS sex,
                {col_or_null("trial", 'trim(CAST("{c}" AS VARCHAR))')} AS trial,
                CAST({survived_sql} AS INTEGER) AS survived,
                CAST({col_or_null("release_lat", 'try_cast("{c}" AS DOUBLE)')} AS DOUBLE) AS release_lat,
                CAST({col_or_null("release_lon", 'try_cast("{c}" AS DOUBLE)')} AS DOUBLE) AS release_lon
            FROM animals_raw
            WHERE "{src['animal_id']}" IS NOT NULL AND trim("{src['animal_id']}") != ''
            ORDER BY animal_id
        """)

        dupes = self.db.execute("""
            SELECT animal_id FROM animals GROUP BY 1 HAVING count(*) > 1
        """).fetchall()
        if dupes:
            raise ValueError(f"animals: duplicate animal_id values {[d[0] for d in dupes]}")

        cnt = self._record(csv_path, "animals")
        print(f"    → {cnt} animals loaded.")
        return cnt

    def check_data_quality(self):
        """Audits the join between relocations and the roster."""
        df = self.db.execute("""
            SELECT
                (SELECT count(*) FROM locations) AS total_relocations,
                (SELECT count(*) FROM animals) AS total_animals,
                (SELECT count(*) FROM locations l
                    WHERE l.animal_id NOT IN (SELECT animal_id FROM animals)) AS orphan_relocations,
                (SELECT count(*) FROM animals a
                    WHERE a.animal_id NOT IN (SELECT animal_id FROM locations)) AS animals_without_relocations,
                (SELECT count(*) FROM animals WHERE survived IS NULL) AS animals_missing_fate
        """).df()
        return df
