from unittest import mock

from django.test import TestCase

from events import ledger, team_registry
from events.exceptions import (
    AlreadyOnTeam,
    AlreadyRegistered,
    CannotRemoveLeader,
    CapacityExceeded,
    DeadlinePassed,
    InvalidInviteCode,
    InvalidTeamSize,
    NotATeamMember,
    NotTeamLeader,
    RegistrationClosed,
    TeamAlreadyComplete,
    TeamFull,
    TeamNotFound,
    TeamNotFull,
)
from events.models import Event, EventTeam, ParticipantTeamMember, Ticket
from events.tickets import issue as real_issue
from .utils import close_deadline, make_hackathon, make_user, make_users


class TeamTestCase(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")
        self.leader = make_user("leader")
        self.hackathon = make_hackathon(self.organizer, registration_limit=100)

    def build_team(self, target_size, members=0, leader=None):
        leader = leader or self.leader
        team, _ = team_registry.create_team(self.hackathon.id, leader, target_size, name="Team")
        joiners = make_users(members)
        for user in joiners:
            team_registry.join_team(team.invite_code, user)
        return team, joiners


class CreateTeamTests(TeamTestCase):
    def test_create_team_adds_leader_as_first_member(self):
        team, created = team_registry.create_team(self.hackathon.id, self.leader, 3, name="Rockets")

        self.assertTrue(created)
        self.assertEqual(team.status, EventTeam.STATUS_FORMING)
        self.assertEqual(team.target_size, 3)
        self.assertRegex(team.invite_code, r"^[0-9A-F]{12}$")

        members = list(team.active_members)
        self.assertEqual(len(members), 1)
        self.assertEqual(members[0].participant, self.leader)
        self.assertEqual(members[0].role, ParticipantTeamMember.ROLE_LEADER)

    def test_create_team_is_idempotent(self):
        first, _ = team_registry.create_team(self.hackathon.id, self.leader, 3)
        second, created = team_registry.create_team(self.hackathon.id, self.leader, 4)

        self.assertFalse(created)
        self.assertEqual(first.id, second.id)
        self.assertEqual(second.target_size, 3)
        self.assertEqual(EventTeam.objects.filter(event=self.hackathon).count(), 1)

    def test_member_of_another_team_gets_that_team_back(self):
        team, (member,) = self.build_team(3, members=1)
        again, created = team_registry.create_team(self.hackathon.id, member, 2)
        self.assertFalse(created)
        self.assertEqual(again.id, team.id)

    def test_target_size_bounds(self):
        for size in (0, -1, self.hackathon.max_team_size + 1):
            with self.subTest(size=size):
                with self.assertRaises(InvalidTeamSize):
                    team_registry.create_team(self.hackathon.id, self.leader, size)

    def test_direct_registrant_cannot_lead_a_team(self):
        ledger.register(self.hackathon.id, self.leader)
        with self.assertRaises(AlreadyRegistered):
            team_registry.create_team(self.hackathon.id, self.leader, 2)

    def test_closed_event(self):
        Event.objects.filter(pk=self.hackathon.pk).update(status=Event.STATUS_CLOSED)
        with self.assertRaises(RegistrationClosed):
            team_registry.create_team(self.hackathon.id, self.leader, 2)

    def test_deadline_passed(self):
        close_deadline(self.hackathon)
        with self.assertRaises(DeadlinePassed):
            team_registry.create_team(self.hackathon.id, self.leader, 2)


class JoinTeamTests(TeamTestCase):
    def test_join_team(self):
        team, _ = self.build_team(3)
        member = make_user("member")

        joined_team, joined = team_registry.join_team(team.invite_code, member)

        self.assertTrue(joined)
        self.assertEqual(joined_team.id, team.id)
        self.assertEqual(team.current_size, 2)

    def test_invite_code_is_case_insensitive(self):
        team, _ = self.build_team(3)
        _, joined = team_registry.join_team(f"  {team.invite_code.lower()} ", make_user("member"))
        self.assertTrue(joined)

    def test_joining_same_team_twice_returns_it(self):
        team, (member,) = self.build_team(3, members=1)
        again, joined = team_registry.join_team(team.invite_code, member)

        self.assertFalse(joined)
        self.assertEqual(again.id, team.id)
        self.assertEqual(team.current_size, 2)

    def test_joining_a_second_team_conflicts(self):
        team_a, (member,) = self.build_team(3, members=1)
        team_b, _ = team_registry.create_team(self.hackathon.id, make_user("other_leader"), 3)

        with self.assertRaises(AlreadyOnTeam):
            team_registry.join_team(team_b.invite_code, member)

    def test_direct_registrant_cannot_join(self):
        team, _ = self.build_team(3)
        solo = make_user("solo")
        ledger.register(self.hackathon.id, solo)

        with self.assertRaises(AlreadyRegistered):
            team_registry.join_team(team.invite_code, solo)

    def test_team_full(self):
        team, _ = self.build_team(2, members=1)
        with self.assertRaises(TeamFull):
            team_registry.join_team(team.invite_code, make_user("late"))
        self.assertEqual(team.current_size, 2)

    def test_unknown_invite_code(self):
        with self.assertRaises(InvalidInviteCode):
            team_registry.join_team("DEADBEEF0000", make_user("member"))

    def test_cancelled_team_invite_is_invalid(self):
        team, _ = self.build_team(3)
        team_registry.cancel_team(team.id, self.leader)
        with self.assertRaises(InvalidInviteCode):
            team_registry.join_team(team.invite_code, make_user("member"))

    def test_complete_team_cannot_be_joined(self):
        team, _ = self.build_team(2, members=1)
        team_registry.complete_registration(team.id, self.leader)
        with self.assertRaises(TeamFull):
            team_registry.join_team(team.invite_code, make_user("late"))

    def test_rejoin_after_deadline_reports_deadline(self):
        team, (member,) = self.build_team(3, members=1)
        close_deadline(self.hackathon)

        with self.assertRaises(DeadlinePassed):
            team_registry.join_team(team.invite_code, member)
        with self.assertRaises(DeadlinePassed):
            ledger.register(self.hackathon.id, member)

    def test_join_locks_team_then_event(self):
        team, _ = self.build_team(3)
        with mock.patch("events.team_registry.lock_event", wraps=ledger.lock_event) as lock_event:
            team_registry.join_team(team.invite_code, make_user("member"))
        lock_event.assert_called_once_with(self.hackathon.id)


class CompleteRegistrationTests(TeamTestCase):
    def test_size_invariant(self):
        # One leader per target size, joining one member at a time
        for target in range(1, 11):
            with self.subTest(target=target):
                leader = make_user(f"lead{target}")
                team, _ = team_registry.create_team(self.hackathon.id, leader, target)

                for user in make_users(target - 1):
                    with self.assertRaises(TeamNotFull):
                        team_registry.complete_registration(team.id, leader)
                    team_registry.join_team(team.invite_code, user)

                team, tickets, completed_now = team_registry.complete_registration(team.id, leader)
                self.assertTrue(completed_now)
                self.assertEqual(len(tickets), target)

        self.hackathon.refresh_from_db()
        self.assertEqual(self.hackathon.registered_count, sum(range(1, 11)))
        self.assertEqual(self.hackathon.team_count, 10)

    def test_team_of_three(self):
        team, members = self.build_team(3, members=1)

        with self.assertRaises(TeamNotFull):
            team_registry.complete_registration(team.id, self.leader)

        team_registry.join_team(team.invite_code, make_user("third"))
        team, tickets, completed_now = team_registry.complete_registration(team.id, self.leader)

        self.assertTrue(completed_now)
        self.assertEqual(team.status, EventTeam.STATUS_COMPLETE)
        self.assertIsNotNone(team.completed_at)
        self.assertEqual(len(tickets), 3)
        self.assertEqual(len({t.ticket_id for t in tickets}), 3)
        self.assertTrue(all(t.team_id == team.id for t in tickets))

        self.hackathon.refresh_from_db()
        self.assertEqual(self.hackathon.registered_count, 3)
        self.assertEqual(self.hackathon.team_count, 1)

        for membership in team.active_members:
            self.assertTrue(ledger.has_seat(self.hackathon.id, membership.participant_id))

    def test_forming_team_holds_no_seat(self):
        team, (member,) = self.build_team(3, members=1)
        self.assertFalse(ledger.has_seat(self.hackathon.id, member.id))
        self.assertFalse(ledger.has_seat(self.hackathon.id, self.leader.id))

    def test_completion_stores_leader_answers(self):
        team, _ = self.build_team(2, members=1)
        team, _, _ = team_registry.complete_registration(
            team.id, self.leader, form_data={"project": "Rocket league"}
        )
        self.assertEqual(EventTeam.objects.get(pk=team.pk).form_data, {"project": "Rocket league"})

        # A repeated completion leaves the stored answers alone
        team_registry.complete_registration(team.id, self.leader, form_data={"project": "other"})
        self.assertEqual(EventTeam.objects.get(pk=team.pk).form_data, {"project": "Rocket league"})

    def test_second_completion_returns_same_tickets(self):
        team, _ = self.build_team(2, members=1)
        _, tickets, _ = team_registry.complete_registration(team.id, self.leader)

        _, again, completed_now = team_registry.complete_registration(team.id, self.leader)

        self.assertFalse(completed_now)
        self.assertEqual(
            sorted(t.ticket_id for t in tickets),
            sorted(t.ticket_id for t in again),
        )
        self.hackathon.refresh_from_db()
        self.assertEqual(self.hackathon.registered_count, 2)
        self.assertEqual(self.hackathon.team_count, 1)

    def test_only_leader_completes(self):
        team, (member,) = self.build_team(2, members=1)
        with self.assertRaises(NotTeamLeader):
            team_registry.complete_registration(team.id, member)

    def test_unknown_team(self):
        with self.assertRaises(TeamNotFound):
            team_registry.complete_registration(999999, self.leader)

    def test_deadline_passed(self):
        team, _ = self.build_team(2, members=1)
        close_deadline(self.hackathon)
        with self.assertRaises(DeadlinePassed):
            team_registry.complete_registration(team.id, self.leader)

    def test_not_enough_seats(self):
        small = make_hackathon(self.organizer, title="Small", registration_limit=2)
        team, _ = team_registry.create_team(small.id, self.leader, 3)
        for user in make_users(2):
            team_registry.join_team(team.invite_code, user)

        with self.assertRaises(CapacityExceeded):
            team_registry.complete_registration(team.id, self.leader)

        team.refresh_from_db()
        small.refresh_from_db()
        self.assertEqual(team.status, EventTeam.STATUS_FORMING)
        self.assertEqual(small.registered_count, 0)
        self.assertEqual(small.team_count, 0)

    def test_failure_before_transition_rolls_everything_back(self):
        team, _ = self.build_team(3, members=2)

        with mock.patch("events.team_registry._mark_complete", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                team_registry.complete_registration(team.id, self.leader)

        team.refresh_from_db()
        self.hackathon.refresh_from_db()
        self.assertEqual(team.status, EventTeam.STATUS_FORMING)
        self.assertFalse(Ticket.objects.filter(event=self.hackathon).exists())
        self.assertEqual(self.hackathon.registered_count, 0)
        self.assertEqual(self.hackathon.team_count, 0)

    def test_failure_between_tickets_rolls_everything_back(self):
        team, _ = self.build_team(3, members=2)
        calls = []

        def flaky_issue(event, participant, team=None):
            calls.append(participant.id)
            if len(calls) == 2:
                raise RuntimeError("ticket store unavailable")
            return real_issue(event, participant, team=team)

        with mock.patch("events.team_registry.issue", side_effect=flaky_issue):
            with self.assertRaises(RuntimeError):
                team_registry.complete_registration(team.id, self.leader)

        team.refresh_from_db()
        self.hackathon.refresh_from_db()
        self.assertEqual(team.status, EventTeam.STATUS_FORMING)
        self.assertFalse(Ticket.objects.filter(event=self.hackathon).exists())
        self.assertEqual(self.hackathon.registered_count, 0)

        # Nothing left half-done, so a retry goes through
        _, tickets, completed_now = team_registry.complete_registration(team.id, self.leader)
        self.assertTrue(completed_now)
        self.assertEqual(len(tickets), 3)


class MembershipChangeTests(TeamTestCase):
    def test_leader_removes_member(self):
        team, (member,) = self.build_team(3, members=1)
        team_registry.remove_member(team.id, member.id, self.leader)

        self.assertEqual(team.current_size, 1)
        self.assertIsNone(team_registry.team_for(self.hackathon.id, member.id))

        # Removed member is free to join elsewhere
        other, _ = team_registry.create_team(self.hackathon.id, make_user("other"), 2)
        _, joined = team_registry.join_team(other.invite_code, member)
        self.assertTrue(joined)

    def test_remove_member_checks(self):
        team, (member,) = self.build_team(3, members=1)

        with self.assertRaises(NotTeamLeader):
            team_registry.remove_member(team.id, self.leader.id, member)
        with self.assertRaises(CannotRemoveLeader):
            team_registry.remove_member(team.id, self.leader.id, self.leader)
        with self.assertRaises(NotATeamMember):
            team_registry.remove_member(team.id, make_user("stranger").id, self.leader)

    def test_complete_team_is_frozen(self):
        team, (member,) = self.build_team(2, members=1)
        team_registry.complete_registration(team.id, self.leader)

        with self.assertRaises(TeamAlreadyComplete):
            team_registry.remove_member(team.id, member.id, self.leader)
        with self.assertRaises(TeamAlreadyComplete):
            team_registry.leave_team(team.id, member)
        with self.assertRaises(TeamAlreadyComplete):
            team_registry.cancel_team(team.id, self.leader)

    def test_member_leaves_and_rejoins(self):
        team, (member,) = self.build_team(3, members=1)

        team_registry.leave_team(team.id, member)
        self.assertEqual(team.current_size, 1)

        _, joined = team_registry.join_team(team.invite_code, member)
        self.assertTrue(joined)
        self.assertEqual(team.current_size, 2)
        self.assertEqual(ParticipantTeamMember.objects.filter(team=team, participant=member).count(), 1)

    def test_leader_cannot_leave(self):
        team, _ = self.build_team(3)
        with self.assertRaises(CannotRemoveLeader):
            team_registry.leave_team(team.id, self.leader)

    def test_outsider_cannot_leave(self):
        team, _ = self.build_team(3)
        with self.assertRaises(NotATeamMember):
            team_registry.leave_team(team.id, make_user("stranger"))

    def test_cancel_team_frees_members(self):
        team, (member,) = self.build_team(3, members=1)

        cancelled = team_registry.cancel_team(team.id, self.leader)

        self.assertEqual(cancelled.status, EventTeam.STATUS_CANCELLED)
        self.assertIsNotNone(cancelled.cancelled_at)
        self.assertEqual(cancelled.current_size, 0)
        self.assertIsNone(team_registry.team_for(self.hackathon.id, self.leader.id))

        # Both can start over
        new_team, created = team_registry.create_team(self.hackathon.id, self.leader, 2)
        self.assertTrue(created)
        self.assertNotEqual(new_team.id, team.id)
        _, joined = team_registry.join_team(new_team.invite_code, member)
        self.assertTrue(joined)

    def test_only_leader_cancels(self):
        team, (member,) = self.build_team(3, members=1)
        with self.assertRaises(NotTeamLeader):
            team_registry.cancel_team(team.id, member)
