from django.core.exceptions import ValidationError
from django.test import TestCase

from events import ledger, team_registry
from events.datetime_utils import is_deadline_passed
from events.exceptions import (
    AlreadyCheckedIn,
    AlreadyOnTeam,
    AlreadyRegistered,
    CapacityExceeded,
    DeadlinePassed,
    EventNotFound,
    RegistrationClosed,
    RegistrationNotFound,
    TicketNotFound,
)
from events.models import Event, EventRegistration, Ticket
from .utils import close_deadline, make_event, make_hackathon, make_user


class RegisterTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.event = make_event(self.organizer, registration_limit=2)

    def test_register_creates_record_ticket_and_takes_a_seat(self):
        record, created = ledger.register(self.event.id, self.alice, form_data={"tshirt": "M"})

        self.assertTrue(created)
        self.assertEqual(record.status, EventRegistration.STATUS_ACTIVE)
        self.assertEqual(record.form_data, {"tshirt": "M"})
        self.assertEqual(record.ticket.participant, self.alice)
        self.assertRegex(record.ticket.ticket_id, r"^TICKET-[0-9A-F]{32}$")

        self.event.refresh_from_db()
        self.assertEqual(self.event.registered_count, 1)

    def test_registering_twice_returns_the_same_record(self):
        first, created_first = ledger.register(self.event.id, self.alice)
        second, created_second = ledger.register(self.event.id, self.alice)

        self.assertTrue(created_first)
        self.assertFalse(created_second)
        self.assertEqual(first.id, second.id)
        self.assertEqual(first.ticket.ticket_id, second.ticket.ticket_id)

        self.event.refresh_from_db()
        self.assertEqual(self.event.registered_count, 1)
        self.assertEqual(Ticket.objects.filter(event=self.event).count(), 1)

    def test_capacity_is_never_exceeded(self):
        ledger.register(self.event.id, self.alice)
        ledger.register(self.event.id, self.bob)

        with self.assertRaises(CapacityExceeded):
            ledger.register(self.event.id, make_user("carol"))

        self.event.refresh_from_db()
        self.assertEqual(self.event.registered_count, 2)
        self.assertEqual(EventRegistration.objects.filter(event=self.event).count(), 2)

    def test_unknown_event(self):
        with self.assertRaises(EventNotFound):
            ledger.register(999999, self.alice)

    def test_draft_and_closed_events_reject_registration(self):
        for status in (Event.STATUS_DRAFT, Event.STATUS_CLOSED, Event.STATUS_COMPLETED):
            with self.subTest(status=status):
                event = make_event(self.organizer, status=status)
                with self.assertRaises(RegistrationClosed):
                    ledger.register(event.id, self.alice)

    def test_ongoing_event_accepts_registration(self):
        event = make_event(self.organizer, status=Event.STATUS_ONGOING)
        _, created = ledger.register(event.id, self.alice)
        self.assertTrue(created)

    def test_deadline_passed(self):
        close_deadline(self.event)
        with self.assertRaises(DeadlinePassed):
            ledger.register(self.event.id, self.alice)

    def test_deadline_instant_is_still_open(self):
        self.assertFalse(is_deadline_passed(self.event, at=self.event.registration_deadline))

    def test_status_is_checked_before_deadline(self):
        close_deadline(self.event)
        Event.objects.filter(pk=self.event.pk).update(status=Event.STATUS_CLOSED)
        with self.assertRaises(RegistrationClosed):
            ledger.register(self.event.id, self.alice)

    def test_team_member_cannot_register_directly(self):
        hackathon = make_hackathon(self.organizer)
        team_registry.create_team(hackathon.id, self.alice, 2)

        with self.assertRaises(AlreadyOnTeam):
            ledger.register(hackathon.id, self.alice)

        hackathon.refresh_from_db()
        self.assertEqual(hackathon.registered_count, 0)


class ClaimTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")
        self.alice = make_user("alice")
        self.hackathon = make_hackathon(self.organizer)

    def test_no_claim(self):
        self.assertIsNone(ledger.claim_for(self.hackathon.id, self.alice.id))
        ledger.check_no_claim(self.hackathon.id, self.alice.id)

    def test_direct_record_is_a_claim(self):
        event = make_event(self.organizer)
        record, _ = ledger.register(event.id, self.alice)

        self.assertEqual(ledger.claim_for(event.id, self.alice.id), record)
        with self.assertRaises(AlreadyRegistered):
            ledger.check_no_claim(event.id, self.alice.id)

    def test_cancelled_record_is_not_a_claim(self):
        event = make_event(self.organizer)
        ledger.register(event.id, self.alice)
        ledger.cancel(event.id, self.alice)

        ledger.check_no_claim(event.id, self.alice.id)

    def test_forming_team_is_a_claim_but_not_a_seat(self):
        team, _ = team_registry.create_team(self.hackathon.id, self.alice, 2)

        self.assertFalse(ledger.has_seat(self.hackathon.id, self.alice.id))
        self.assertEqual(ledger.claim_for(self.hackathon.id, self.alice.id).team_id, team.id)
        with self.assertRaises(AlreadyOnTeam):
            ledger.check_no_claim(self.hackathon.id, self.alice.id)

    def test_complete_team_is_a_seat(self):
        team, _ = team_registry.create_team(self.hackathon.id, self.alice, 1)
        team_registry.complete_registration(team.id, self.alice)

        self.assertTrue(ledger.has_seat(self.hackathon.id, self.alice.id))
        with self.assertRaises(AlreadyOnTeam):
            ledger.check_no_claim(self.hackathon.id, self.alice.id)


class CancelTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")
        self.alice = make_user("alice")
        self.event = make_event(self.organizer, registration_limit=1)

    def test_cancel_frees_the_seat(self):
        ledger.register(self.event.id, self.alice)
        record = ledger.cancel(self.event.id, self.alice)

        self.assertEqual(record.status, EventRegistration.STATUS_CANCELLED)
        self.event.refresh_from_db()
        self.assertEqual(self.event.registered_count, 0)
        self.assertFalse(ledger.has_seat(self.event.id, self.alice.id))

        # The freed seat can be taken by someone else
        _, created = ledger.register(self.event.id, make_user("bob"))
        self.assertTrue(created)

    def test_cancel_without_registration(self):
        with self.assertRaises(RegistrationNotFound):
            ledger.cancel(self.event.id, self.alice)

    def test_reregistering_after_cancel_reuses_the_ticket(self):
        first, _ = ledger.register(self.event.id, self.alice)
        ledger.cancel(self.event.id, self.alice)
        second, created = ledger.register(self.event.id, self.alice)

        self.assertTrue(created)
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(first.ticket_id, second.ticket_id)
        self.assertEqual(
            EventRegistration.objects.filter(event=self.event, participant=self.alice).count(), 2
        )


class AttendanceTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")
        self.alice = make_user("alice")
        self.event = make_event(self.organizer)
        self.record, _ = ledger.register(self.event.id, self.alice)
        self.ticket_id = self.record.ticket.ticket_id

    def test_mark_attendance(self):
        ticket = ledger.mark_attendance(self.event.id, self.ticket_id)

        self.assertIsNotNone(ticket.checked_in_at)
        self.record.refresh_from_db()
        self.assertEqual(self.record.status, EventRegistration.STATUS_ATTENDED)
        self.assertEqual(self.record.attended_at, ticket.checked_in_at)
        self.event.refresh_from_db()
        self.assertEqual(self.event.attendance_count, 1)

    def test_duplicate_scan_is_rejected(self):
        ledger.mark_attendance(self.event.id, self.ticket_id)
        with self.assertRaises(AlreadyCheckedIn):
            ledger.mark_attendance(self.event.id, self.ticket_id)

    def test_manual_override_does_not_double_count(self):
        ledger.mark_attendance(self.event.id, self.ticket_id)
        ledger.mark_attendance(
            self.event.id, self.ticket_id, manual_override=True, override_reason="re-entry"
        )

        self.event.refresh_from_db()
        self.assertEqual(self.event.attendance_count, 1)
        self.record.refresh_from_db()
        self.assertTrue(self.record.manual_override)
        self.assertEqual(self.record.override_reason, "re-entry")

    def test_unmark_attendance(self):
        ledger.mark_attendance(self.event.id, self.ticket_id)
        ticket = ledger.mark_attendance(
            self.event.id, self.ticket_id, attended=False, manual_override=True, override_reason="scanned wrong person"
        )

        self.assertIsNone(ticket.checked_in_at)
        self.record.refresh_from_db()
        self.assertEqual(self.record.status, EventRegistration.STATUS_ACTIVE)
        self.event.refresh_from_db()
        self.assertEqual(self.event.attendance_count, 0)

    def test_unknown_ticket(self):
        with self.assertRaises(TicketNotFound):
            ledger.mark_attendance(self.event.id, "TICKET-NOPE")

    def test_ticket_of_other_event_is_unknown_here(self):
        other = make_event(self.organizer, title="Other")
        with self.assertRaises(TicketNotFound):
            ledger.mark_attendance(other.id, self.ticket_id)

    def test_cancelled_registration_cannot_check_in(self):
        ledger.cancel(self.event.id, self.alice)
        with self.assertRaises(RegistrationNotFound):
            ledger.mark_attendance(self.event.id, self.ticket_id)


class EventGuardTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")

    def test_limit_is_editable_while_draft(self):
        event = make_event(self.organizer, status=Event.STATUS_DRAFT, registration_limit=10)
        event = Event.objects.get(pk=event.pk)
        event.registration_limit = 20
        event.save()
        event.refresh_from_db()
        self.assertEqual(event.registration_limit, 20)

    def test_limit_is_frozen_once_published(self):
        event = make_event(self.organizer, registration_limit=10)
        event = Event.objects.get(pk=event.pk)
        event.registration_limit = 20
        with self.assertRaises(ValidationError):
            event.save()
