from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from helpdesk.core.config import Settings
from helpdesk.notifications.reminders import ReminderSweep
from helpdesk.services.postgres import DatabaseHealthProbe
from helpdesk.services.users import UserService
from helpdesk.tickets.service import TicketService


def _from_state(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{label} is not configured")
    return service


async def get_ticket_service(request: Request) -> TicketService:
    return _from_state(request, "ticket_service", "Ticket service")


async def get_user_service(request: Request) -> UserService:
    return _from_state(request, "user_service", "User service")


async def get_reminder_sweep(request: Request) -> ReminderSweep:
    return _from_state(request, "reminder_sweep", "Reminder sweep")


async def get_database_probe(request: Request) -> DatabaseHealthProbe:
    return _from_state(request, "database_probe", "Database probe")


async def get_app_settings(request: Request) -> Settings:
    return _from_state(request, "settings", "Settings")


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
ReminderSweepDep = Annotated[ReminderSweep, Depends(get_reminder_sweep)]
DatabaseProbeDep = Annotated[DatabaseHealthProbe, Depends(get_database_probe)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
