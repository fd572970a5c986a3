from __future__ import annotations

import logging

from clinic.application.exceptions import PersistenceError
from clinic.application.use_cases.admin_view_model import AdminViewModel
from clinic.application.use_cases.appointment_store import AppointmentStore
from clinic.application.use_cases.realtime_bridge import RealtimeBridge
from clinic.application.use_cases.session_manager import SessionManager
from clinic.domain.entities.session import AdminUser, SessionState


class AdminConsole:
    """Mount/unmount lifecycle of the appointments admin page."""

    def __init__(
        self,
        session: SessionManager,
        store: AppointmentStore,
        bridge: RealtimeBridge,
        view_model: AdminViewModel,
    ) -> None:
        self.session = session
        self.store = store
        self.bridge = bridge
        self.view_model = view_model
        self._logger = logging.getLogger(__name__)

    async def mount(self) -> SessionState:
        state = await self.session.check_auth()
        if state.is_authenticated:
            await self._activate()
        return state

    async def unmount(self) -> None:
        await self.bridge.stop()
        self.store.close()

    async def login(self, email: str, password: str) -> AdminUser:
        user = await self.session.login(email, password)
        await self._activate()
        return user

    async def logout(self) -> None:
        await self.session.logout()
        await self.bridge.stop()

    async def refresh(self):
        return await self.store.fetch_all()

    async def _activate(self) -> None:
        try:
            await self.store.fetch_all()
        except PersistenceError as e:
            self._logger.error("Initial appointment load failed", extra={"error": str(e)})
        await self.bridge.start()
