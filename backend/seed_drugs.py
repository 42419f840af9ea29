"""Reset the drug collection to the default catalogue.

Replaces every drug; existing ledger entries are kept as history.
"""
from drugstock.db.base import Base
from drugstock.db.session import SessionLocal, engine
from drugstock.models import Drug  # noqa: F401 - register models
from drugstock.services.drug_repository import default_drugs, replace_all


def seed_drugs():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        drugs = replace_all(db, default_drugs())
        print(f"Seeded {len(drugs)} drugs:")
        for drug in drugs:
            print(f"  - {drug.name}: {drug.quantity} {drug.unit}, expires {drug.expiry_date}")
    finally:
        db.close()


if __name__ == "__main__":
    seed_drugs()
