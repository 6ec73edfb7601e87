import os
from dotenv import load_dotenv
from reintro.config import Config
from reintro.utils.demo_data import make_demo_data

def main():
    load_dotenv()

    locations, animals = make_demo_data(n_per_trial=int(os.getenv("DEMO_ANIMALS_PER_TRIAL", "12")))

    for path in (Config.LOCATIONS_CSV, Config.ANIMALS_CSV):
        os.makedirs(os.path.dirname(str(path)) or ".", exist_ok=True)
    locations.to_csv(Config.LOCATIONS_CSV, index=False)
    animals.to_csv(Config.ANIMALS_CSV, index=False)

    print(f"Wrote {len(locations)} relocations to {Config.LOCATIONS_CSV}")
    print(f"Wrote {len(animals)} animals to {Config.ANIMALS_CSV}")

if __name__ == "__main__":
    main()
