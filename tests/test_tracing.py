import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from helpdesk.core.config import Settings
from helpdesk.core.tracing import build_tracer_provider, exporter_headers, get_tracer
from helpdesk.domain.errors import ForbiddenError
from helpdesk.domain.models import TicketPriority, TicketStatus
from helpdesk.notifications.reminders import ReminderSweep
from helpdesk.tickets.service import TicketService
from helpdesk.tickets.state import TicketUpdate


@pytest.fixture
def exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return get_tracer(provider)


@pytest.fixture
def traced_service(repositories, dispatcher, clock, tracer):
    return TicketService(
        repositories.tickets,
        repositories.comments,
        repositories.users,
        dispatcher=dispatcher,
        clock=clock,
        tracer=tracer,
    )


def _spans(exporter, name):
    return [span for span in exporter.get_finished_spans() if span.name == name]


@pytest.mark.asyncio
async def test_update_span_records_lifecycle_outcome(traced_service, people, exporter, dispatcher):
    ticket = await traced_service.create_ticket(
        people.client.as_actor(), title="Printer jam", description="Tray 2 stuck", priority=TicketPriority.HIGH
    )
    await traced_service.update_ticket(people.agent.as_actor(), ticket.id, TicketUpdate(status=TicketStatus.CLOSED))
    await dispatcher.drain()

    (created,) = _spans(exporter, "tickets.create")
    assert created.attributes["helpdesk.actor.role"] == "client"
    assert created.attributes["helpdesk.ticket_id"] == ticket.id
    assert created.attributes["helpdesk.ticket_priority"] == "high"

    (updated,) = _spans(exporter, "tickets.update")
    assert updated.attributes["helpdesk.actor.id"] == "agent-1"
    assert updated.attributes["helpdesk.actor.role"] == "agent"
    assert updated.attributes["helpdesk.ticket_status"] == "closed"
    assert updated.attributes["helpdesk.ticket_auto_assigned"] is True
    assert updated.attributes["helpdesk.ticket_closing"] is True


@pytest.mark.asyncio
async def test_denied_operation_marks_span_as_error(traced_service, people, exporter):
    with pytest.raises(ForbiddenError):
        await traced_service.update_ticket(people.client.as_actor(), "t-1", TicketUpdate(priority=TicketPriority.LOW))

    (span,) = _spans(exporter, "tickets.update")
    assert span.status.status_code is StatusCode.ERROR
    assert span.events[0].name == "exception"


@pytest.mark.asyncio
async def test_list_span_counts_visible_tickets(traced_service, people, exporter):
    await traced_service.create_ticket(people.client.as_actor(), title="One", description="Body")
    await traced_service.create_ticket(people.other_client.as_actor(), title="Two", description="Body")

    await traced_service.list_tickets(people.client.as_actor())

    (span,) = _spans(exporter, "tickets.list")
    assert span.attributes["helpdesk.ticket_count"] == 1
    assert "helpdesk.filter_status" not in span.attributes


@pytest.mark.asyncio
async def test_sweep_span_reports_totals(repositories, dispatcher, clock, tracer, exporter):
    sweep = ReminderSweep(repositories.tickets, repositories.users, dispatcher, clock=clock, tracer=tracer)

    await sweep.run()

    (span,) = _spans(exporter, "reminders.sweep")
    assert span.attributes["helpdesk.tickets_checked"] == 0
    assert span.attributes["helpdesk.emails_sent"] == 0
    assert span.attributes["helpdesk.stale_after_hours"] == 24


def test_tracer_provider_only_built_when_enabled():
    assert build_tracer_provider(Settings(otel_enabled=False)) is None

    provider = build_tracer_provider(
        Settings(otel_enabled=True, otel_service_name="helpdesk-test", otel_exporter_otlp_endpoint="http://collector:4318/v1/traces")
    )
    try:
        assert provider is not None
        assert provider.resource.attributes["service.name"] == "helpdesk-test"
    finally:
        provider.shutdown()


def test_exporter_headers_skip_malformed_pairs():
    assert exporter_headers("api-key=abc, x-team = helpdesk ,broken,=nokey") == {
        "api-key": "abc",
        "x-team": "helpdesk",
    }
    assert exporter_headers(None) == {}
