#!/usr/bin/env python3

from museumtix.config import get_settings
from museumtix.main import configure_logging
from museumtix.storage import create_storage


def create_seed_data():
    settings = get_settings().copy(update={"SEED_DATA": True})
    configure_logging(settings.LOG_LEVEL)
    
    print(f"🚀 Seeding {settings.STORAGE_BACKEND} storage for {settings.PROJECT_NAME}...")
    if settings.STORAGE_BACKEND == "memory":
        print("⚠️  In-memory storage is seeded on every start and discarded on exit")
    
    storage = create_storage(settings)
    try:
        print("✅ Storage ready")
        print("Contains:")
        print(f"  - {len(storage.get_all_users())} users")
        print(f"  - {len(storage.get_all_exhibitions())} exhibitions")
        print(f"  - {len(storage.get_all_ticket_types())} ticket types")
        print(f"  - {len(storage.get_approved_testimonials())} approved testimonials")
    except Exception as e:
        print(f"❌ Error reading seeded storage: {e}")
        raise
    finally:
        storage.close()

if __name__ == "__main__":
    create_seed_data()
