#!/usr/bin/env python3
"""
Interactive admin console harness (no HTTP).

Usage:
  python3 scripts/watch_appointments.py [--email EMAIL] [--password PASSWORD]

What it does:
- Restores or opens an admin session through the same AdminConsole the API uses
- Keeps a realtime subscription open and reprints the list on every change
- Lets you filter, confirm or cancel appointments from the prompt
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from clinic.application.dto.booking_request import BookingRequestDTO
from clinic.application.exceptions import AuthError, PersistenceError
from clinic.core.config import settings
from clinic.main import configure_logging
from clinic.wiring.dependencies import Container, create_container


def _print_header() -> None:
    print("\nClinic Admin Console")
    print("-" * 60)
    print("Commands: /search TEXT, /status all|pending|confirmed|cancelled,")
    print("          /confirm ID, /cancel ID, /refresh, /book, /quit")
    print("-" * 60)


def _print_list(container: Container) -> None:
    view_model = container.view_model
    rows = view_model.visible()
    counts = view_model.counts()
    print(
        f"\n--- Appointments ({len(rows)} shown, {counts['all']} total,"
        f" {counts['pending']} pending) search={view_model.search_term!r} status={view_model.status_filter} ---"
    )
    for a in rows:
        print(
            f"{a.id[:8]}  {a.status.value:<9}  {a.preferred_date.isoformat()}  "
            f"{a.full_name} <{a.email}> {a.phone}  [{a.service}]"
        )


def _resolve_id(container: Container, prefix: str) -> str:
    matches = [a.id for a in container.store.appointments if a.id.startswith(prefix)]
    return matches[0] if len(matches) == 1 else prefix


async def _book_sample(container: Container) -> None:
    request = BookingRequestDTO(
        full_name="Walk-in Patient",
        email="walkin@example.com",
        phone="5550000000",
        service="checkup",
        preferred_date=date.today() + timedelta(days=1),
    )
    appointment = await container.booking.execute(request)
    print(f"Booked {appointment.id}")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Watch and manage appointment requests.")
    parser.add_argument("--email", default=None)
    parser.add_argument("--password", default=None)
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)
    container = create_container(settings)
    console = container.console

    state = await console.mount()
    if not state.is_authenticated:
        email = args.email or settings.DEV_ADMIN_EMAIL
        password = args.password or settings.DEV_ADMIN_PASSWORD
        try:
            await console.login(email, password)
        except AuthError as e:
            print(f"Login failed: {e}")
            await container.aclose()
            return

    remove_listener = container.store.add_listener(lambda _snapshot: _print_list(container))
    _print_header()
    _print_list(container)

    try:
        while True:
            try:
                line = (await asyncio.to_thread(input, "\n> ")).strip()
            except (EOFError, KeyboardInterrupt):
                print("\nBye!")
                return
            if not line:
                continue

            cmd, _, arg = line.partition(" ")
            cmd = cmd.lower()
            try:
                if cmd in ("/quit", "/exit"):
                    print("Bye!")
                    return
                if cmd == "/search":
                    container.view_model.update(search_term=arg)
                    _print_list(container)
                elif cmd == "/status":
                    container.view_model.update(status_filter=arg or "all")
                    _print_list(container)
                elif cmd == "/confirm":
                    await container.view_model.confirm(_resolve_id(container, arg))
                elif cmd == "/cancel":
                    await container.view_model.cancel(_resolve_id(container, arg))
                elif cmd == "/refresh":
                    await console.refresh()
                elif cmd == "/book":
                    await _book_sample(container)
                else:
                    _print_header()
            except ValueError as e:
                print(f"Invalid input: {e}")
            except (AuthError, PersistenceError) as e:
                print(f"Failed: {e}")
    finally:
        remove_listener()
        await container.aclose()


if __name__ == "__main__":
    asyncio.run(main())
