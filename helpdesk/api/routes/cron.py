from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import APIRouter, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from helpdesk.dependencies.services import ReminderSweepDep, SettingsDep

router = APIRouter(prefix="/cron", tags=["cron"])

cron_bearer = HTTPBearer(auto_error=False)


class ReminderSweepResponse(BaseModel):
    message: str
    tickets_checked: int
    emails_sent: int


@router.get("/reminders", response_model=ReminderSweepResponse, summary="Remind agents about stale tickets")
async def send_reminders(
    sweep: ReminderSweepDep,
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(cron_bearer)],
) -> ReminderSweepResponse:
    presented = credentials.credentials if credentials is not None else ""
    if not secrets.compare_digest(presented.encode(), settings.cron_secret.encode()):
        raise HTTPException(status_code=401, detail="Invalid cron credentials")

    report = await sweep.run()
    return ReminderSweepResponse(
        message="Reminders sent",
        tickets_checked=report.tickets_checked,
        emails_sent=report.emails_sent,
    )
