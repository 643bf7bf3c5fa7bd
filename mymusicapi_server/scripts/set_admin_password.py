#!/usr/bin/env python3
# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Set or clear the stored admin password. Run: python -m mymusicapi_server.scripts.set_admin_password"""

import asyncio
import getpass
import sys

from mymusicapi_server.database import async_session_maker, init_db
from mymusicapi_server.services.admin_settings import clear_password_override, update_admin_settings


async def main():
    await init_db()
    password = getpass.getpass("New admin password (leave blank to clear the override): ")
    async with async_session_maker() as session:
        if not password:
            cleared = await clear_password_override(session)
            await session.commit()
            print("Password override cleared; ADMIN_PASSWORD applies." if cleared else "No password override was set.")
            return
        if getpass.getpass("Repeat password: ") != password:
            print("Passwords do not match")
            sys.exit(1)
        await update_admin_settings(session, new_password=password)
        await session.commit()
        print("Admin password updated.")


if __name__ == "__main__":
    asyncio.run(main())
