import psycopg2
from dotenv import load_dotenv
import os

load_dotenv()

# Adds the scheduling indexes to an existing PostgreSQL database.
# Fresh databases get them from SQLModel.metadata.create_all on startup.

conn = psycopg2.connect(
    dbname=os.getenv("DB_NAME"),
    user=os.getenv("DB_USER"),
    password=os.getenv("DB_PASSWORD"),
    host=os.getenv("DB_HOST"),
    port=os.getenv("DB_PORT", "5432"),
)

cur = conn.cursor()

index_commands = [
    "CREATE INDEX IF NOT EXISTS ix_draft_shifts_start_time ON draft_shifts (start_time);",
    "CREATE INDEX IF NOT EXISTS ix_draft_shifts_employee_id_start_time ON draft_shifts (employee_id, start_time);",
    "CREATE INDEX IF NOT EXISTS ix_published_shifts_start_time ON published_shifts (start_time);",
    "CREATE INDEX IF NOT EXISTS ix_published_shifts_week_start ON published_shifts (week_start);",
    # Backs the publish dedup: one published row per (employee, start)
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_published_shifts_employee_start ON published_shifts (employee_id, start_time);",
    "CREATE INDEX IF NOT EXISTS ix_time_off_notices_employee_id ON time_off_notices (employee_id);",
    "CREATE INDEX IF NOT EXISTS ix_time_off_notices_start_time ON time_off_notices (start_time);",
    "CREATE INDEX IF NOT EXISTS ix_time_off_notices_employee_id_start_time ON time_off_notices (employee_id, start_time);",
    "CREATE INDEX IF NOT EXISTS ix_availability_employee_id ON availability (employee_id);",
]

try:
    for cmd in index_commands:
        print(f"Executing: {cmd}")
        cur.execute(cmd)
    conn.commit()
except psycopg2.Error as e:
    conn.rollback()
    print(f"Index creation failed, rolled back: {e}")
    raise
finally:
    cur.close()
    conn.close()

print("Indexes created successfully!")
