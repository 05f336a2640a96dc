from sqlmodel import Session
from attendtrack.db import engine, init_db
from attendtrack.seed import seed_demo_accounts


def main():
    """
    Creates the tables and the demo accounts if they don't already exist.
    """
    init_db()
    with Session(engine) as session:
        users = seed_demo_accounts(session)
        for user in users:
            print(f"{user.username} ({user.role.value})")
    print("Demo data ready.")


if __name__ == "__main__":
    main()
