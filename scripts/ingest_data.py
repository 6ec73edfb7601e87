from dotenv import load_dotenv
from reintro.config import Config
from reintro.utils.db import DatabaseManager
from reintro.ingest.loader import TrackingLoader

def main():
    load_dotenv()

    db_mgr = DatabaseManager(Config.DB_PATH, memory_limit=Config.DUCKDB_MEMORY_LIMIT)
    conn = db_mgr.connect()
    loader = TrackingLoader(conn)

    loader.load_locations(Config.LOCATIONS_CSV)
    loader.load_animals(Config.ANIMALS_CSV)

    print(loader.check_data_quality().to_string(index=False))
    print(conn.execute("SELECT * FROM ingest_manifest ORDER BY ingested_at").df().to_string(index=False))

    db_mgr.close()
    print("Ingest Complete. Ready for Analysis.")

if __name__ == "__main__":
    main()
