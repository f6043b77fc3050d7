from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from helpdesk.api.routes import auth, comments, cron, ping, tickets
from helpdesk.core.config import Settings, get_settings
from helpdesk.core.logging import configure_logging
from helpdesk.core.tracing import install_tracer_provider, shutdown_tracer_provider
from helpdesk.notifications.notifier import NotificationDispatcher, build_notifier
from helpdesk.notifications.reminders import ReminderSweep
from helpdesk.services.auth import AuthService
from helpdesk.services.postgres import DatabaseHealthProbe
from helpdesk.services.users import UserService
from helpdesk.tickets.repository import CommentRepository, TicketRepository, UserRepository
from helpdesk.tickets.service import TicketService
from helpdesk.tickets.state import TicketStateMachine


def _to_asyncpg_dsn(dsn: str) -> str:
    """Ensure a PostgreSQL DSN uses the asyncpg driver; other URLs pass through."""

    if dsn.startswith("postgresql+asyncpg://"):
        return dsn
    if dsn.startswith("postgresql://"):
        return "postgresql+asyncpg://" + dsn[len("postgresql://") :]
    return dsn


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
        logger = configure_logging(settings)
        tracer_provider = install_tracer_provider(settings)

        app.state.logger = logger
        app.state.tracer_provider = tracer_provider
        app.state.settings = settings

        auth_service = AuthService(settings)
        dispatcher = NotificationDispatcher(build_notifier(settings))
        probe = DatabaseHealthProbe(settings.database_dsn)
        app.state.auth_service = auth_service
        app.state.dispatcher = dispatcher
        app.state.database_probe = probe

        db_engine = create_async_engine(_to_asyncpg_dsn(settings.database_dsn), future=True)
        session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
        users = UserRepository(session_factory, engine=db_engine)
        ticket_repository = TicketRepository(session_factory, engine=db_engine)
        comment_repository = CommentRepository(session_factory, engine=db_engine)
        try:
            await users.ensure_schema()
        except Exception:
            logger.exception("Database initialisation failed; ticket services are unavailable")
            app.state.ticket_service = None
            app.state.user_service = None
            app.state.reminder_sweep = None
        else:
            state_machine = TicketStateMachine.strict() if settings.strict_status_transitions else TicketStateMachine()
            app.state.ticket_service = TicketService(
                ticket_repository,
                comment_repository,
                users,
                dispatcher=dispatcher,
                state_machine=state_machine,
                cascade_delete_comments=settings.cascade_delete_comments,
                brand=settings.email_brand,
            )
            app.state.user_service = UserService(
                users,
                auth_service,
                password_min_length=settings.password_min_length,
            )
            app.state.reminder_sweep = ReminderSweep(
                ticket_repository,
                users,
                dispatcher,
                stale_after_hours=settings.reminder_stale_hours,
                brand=settings.email_brand,
            )
        try:
            yield
        finally:
            await dispatcher.drain()
            await db_engine.dispose()
            await probe.close()
            shutdown_tracer_provider(tracer_provider)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(ping.router)
    app.include_router(auth.router)
    app.include_router(tickets.router)
    app.include_router(comments.router)
    app.include_router(cron.router)
    return app


app = create_app()
