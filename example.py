# This example lists the tables of the public schema
# using the connection settings in .ignore/config.ini
import sqlalchemy_pgschema

settings = sqlalchemy_pgschema.load_config(".ignore/config.ini")
engine = sqlalchemy_pgschema.create_engine_from_config(".ignore/config.ini")

with engine.connect() as conn:
    for collection in engine.dialect.get_schema(conn):
        print(collection["CollectionName"], collection["NumberOfRestrictions"])

    tables = engine.dialect.get_schema(
        conn, "Tables", [None, "public"], strict=settings.strict
    )
    for row in tables:
        print("{table_schema}.{table_name} ({table_type})".format(**row))
