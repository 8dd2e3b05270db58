"""Example usage of the sqlproc library."""

from sqlalchemy import create_engine

from sqlproc import Interpreter, MemorySource, SQLAlchemyClient

# Scripts are plain text; only lines starting with "! " are commands
scripts = MemorySource({
    "group/create.sql": """
! execute create table if not exists grp (id integer primary key, info varchar(255) not null)
! execute delete from grp
""",
    "group/insert.sql": """
Set up the table first.
! include group/create.sql
! proceed 1 == 2
! execute insert into grp (info) values ('Test A ' || $0)
! proceed 1 == 1
! execute insert into grp (info) values ('Test B ' || $0)
! declare select count(*) as total from grp
! capture select * from grp where id <= $!total
""",
})

engine = create_engine("sqlite://")

with engine.begin() as connection:
    db = Interpreter(SQLAlchemyClient(connection), scripts)
    db.load("group/insert.sql")
    db.run(args=["One fish, two fish, red fish, blue fish."])

    # Only "Test B" was inserted: the first proceed closed the gate
    for row in db.get_capture(0):
        print(row["id"], row["info"])

    # Index-addressed execution of a single instruction
    db.run_at(4, args=["again"])
    print(db.run_at(5).rows)
