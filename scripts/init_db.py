from __future__ import annotations

import importlib

from faceauth_station.config import get_settings_module
from faceauth_station.container import SCHEMA_PATH
from faceauth_station.database.bootstrap import apply_schema, list_tables
from faceauth_station.database.connection import DatabaseConnection, DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = DBConfig.from_dict(dict(settings.DB_CONFIG))
    conn = DatabaseConnection.get_instance(db_config)

    apply_schema(conn, database=db_config.database, schema_path=SCHEMA_PATH)
    tables = list_tables(conn)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.user}@{db_config.host}:{db_config.port}/{db_config.database} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
