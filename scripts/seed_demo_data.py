import os

from functions.finance_api import store as records
from functions.finance_api.firestore_client import get_collection_name, get_db, get_project_id
from functions.finance_api.serialization import default_profile
from functions.finance_api.store import RecordStore


def main() -> int:
    emulator = os.getenv("FIRESTORE_EMULATOR_HOST")
    if not emulator:
        print("ERROR: FIRESTORE_EMULATOR_HOST is not set (expected e.g. localhost:8080).")
        return 2

    store = RecordStore(get_db())

    if store.list(records.CASHFLOW) or store.get_singleton(records.PROFILE) is not None:
        print(f"Seed skipped: `{get_collection_name()}` already has data.")
        return 0

    store.put_singleton(records.PROFILE, {**default_profile(), "name": "Demo"})

    sample = {
        records.CASHFLOW: [
            {"date": "2024-01-01", "description": "Salary", "amount": 4200, "type": "income"},
            {"date": "2024-01-03", "description": "Groceries", "amount": 185.4, "type": "expense"},
        ],
        records.EXPENSES: [
            {"description": "Rent", "amount": 550, "date": "2024-01-05", "recurring": {"frequency": "weekly"}},
        ],
        records.BILLS: [
            {"description": "Power", "amount": 160, "dueDate": "2024-01-20", "paid": False},
        ],
        records.GOALS: [
            {"name": "Emergency fund", "targetAmount": 10000, "currentAmount": 2500},
        ],
    }
    count = 0
    for key, docs in sample.items():
        for doc in docs:
            store.append(key, doc)
            count += 1

    store.append(
        records.CREDIT_CARDS,
        {
            "name": "Q Card",
            "plans": [
                {"name": "Laptop", "amount": 2400, "interestFreeMonths": 24, "interestFreeEndDate": "2025-12-31"}
            ],
        },
        stamp_created_at=False,
    )
    count += 1

    print(f"Seeded {count} records into project={get_project_id()} via emulator={emulator}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
