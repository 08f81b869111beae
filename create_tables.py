import asyncio
import sys
import os

# Add current directory to path so imports work
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from planipeda.database import init_db

async def main():
    print("Initializing Database Tables...")
    try:
        await init_db()
        print("Tables created successfully (hierarchy, referentiels, activities, evaluations, sequences, fiches, classes, students).")
    except Exception as e:
        print(f"Error creating tables: {e}")
        sys.exit(1)

if __name__ == "__main__":
    asyncio.run(main())
