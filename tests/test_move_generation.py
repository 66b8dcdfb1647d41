import unittest
import random

from localsearch.base_model.compatibility_checks import calculate_compatible_resources
from localsearch.base_model.event import Event
from localsearch.base_model.problem_instance import ProblemInstance
from localsearch.base_model.resource import Resource
from localsearch.base_model.schedule import Schedule
from localsearch.errors import StaleMoveError
from localsearch.local_search.move import Move, do_move, undo_move, inverse_move
from localsearch.local_search.move_generator import (
    choose_event,
    generate_full_neighborhood,
    generate_list_of_random_moves,
    generate_random_reassign_move,
    generate_random_swap_move,
    generate_single_random_move,
    generate_specific_reassign_move,
    generate_specific_swap_move,
)
from localsearch.util.data_generator import generate_test_data_parsed


class TestMoveGeneration(unittest.TestCase):

    def setUp(self):
        """
        setting up a simple schedule for reuse
        """
        self.resources = [Resource(period=p, location=loc, capacity=2) for p in (1, 2, 3) for loc in ("A", "B")]
        self.instance = ProblemInstance(
            [Event(1, conflicts=frozenset({2})), Event(2), Event(3, allowed_periods=frozenset({3}))],
            self.resources,
        )
        self.compatible_resources = calculate_compatible_resources(self.instance)
        self.schedule = Schedule(self.instance)
        self.a1 = self.instance.get_resource(1, "A")
        self.b2 = self.instance.get_resource(2, "B")
        self.a3 = self.instance.get_resource(3, "A")
        self.schedule.place(1, self.a1)
        self.schedule.place(2, self.a1)
        self.schedule.place(3, self.a3)

    def test_compatible_resources_follow_catalog_order(self):
        self.assertEqual(self.compatible_resources[1], self.resources)
        self.assertEqual(self.compatible_resources[3], [self.a3, self.instance.get_resource(3, "B")])

    def test_do_and_undo_reassign(self):
        move = generate_specific_reassign_move(self.schedule, 1, self.b2)
        do_move(move, self.schedule)
        self.assertTrue(move.is_applied)
        self.assertEqual(self.schedule.resource_of(1), self.b2)
        self.assertEqual(self.schedule.events_in_cell("A", 1), {2})

        undo_move(move, self.schedule)
        self.assertFalse(move.is_applied)
        self.assertEqual(self.schedule.resource_of(1), self.a1)
        self.schedule.check_consistency()

    def test_do_and_undo_swap(self):
        move = generate_specific_swap_move(self.schedule, 2, 3)
        do_move(move, self.schedule)
        self.assertEqual(self.schedule.resource_of(2), self.a3)
        self.assertEqual(self.schedule.resource_of(3), self.a1)
        undo_move(move, self.schedule)
        self.assertEqual(self.schedule.resource_of(2), self.a1)
        self.assertEqual(self.schedule.resource_of(3), self.a3)
        self.schedule.check_consistency()

    def test_do_move_is_idempotent(self):
        move = generate_specific_reassign_move(self.schedule, 1, self.b2)
        do_move(move, self.schedule)
        do_move(move, self.schedule)
        self.assertEqual(self.schedule.resource_of(1), self.b2)
        undo_move(move, self.schedule)
        undo_move(move, self.schedule)
        self.assertEqual(self.schedule.resource_of(1), self.a1)

    def test_inverse_move_restores_the_schedule(self):
        before = dict(self.schedule.assignment())
        for move in (generate_specific_reassign_move(self.schedule, 1, self.b2),
                     generate_specific_swap_move(self.schedule, 1, 3)):
            do_move(move, self.schedule)
            do_move(inverse_move(move), self.schedule)
            self.assertEqual(dict(self.schedule.assignment()), before)
        self.schedule.check_consistency()

    def test_stale_moves_are_rejected(self):
        stale = Move(1, self.b2, self.a3)
        with self.assertRaises(StaleMoveError):
            do_move(stale, self.schedule)

        unknown_event = Move(9, self.a1, self.b2)
        with self.assertRaises(StaleMoveError):
            do_move(unknown_event, self.schedule)

        unknown_resource = Move(1, self.a1, Resource(period=7, location="Z"))
        with self.assertRaises(StaleMoveError):
            do_move(unknown_resource, self.schedule)

        self.assertEqual(self.schedule.resource_of(1), self.a1, "A rejected move must not change the schedule")
        self.schedule.check_consistency()

    def test_swap_needs_two_events(self):
        with self.assertRaises(ValueError):
            Move(1, self.a1, self.b2, is_swap_move=True)
        with self.assertRaises(ValueError):
            generate_specific_swap_move(self.schedule, 1, 1)

    def test_random_moves_never_target_current_resource(self):
        rng = random.Random(0)
        for _ in range(100):
            move = generate_random_reassign_move(self.schedule, 1, self.compatible_resources, rng)
            self.assertNotEqual(move.new_resource, move.old_resource)
            self.assertIn(move.new_resource, self.compatible_resources[1])

            swap = generate_random_swap_move(self.schedule, 1, rng)
            self.assertEqual(swap.other_event_id, 3, "Event 2 shares the resource of event 1")

    def test_no_move_when_event_cannot_move(self):
        instance = ProblemInstance([Event(1)], [Resource(period=1, location="A")])
        schedule = Schedule(instance)
        schedule.place(1, instance.get_resource(1, "A"))
        compatible_resources = calculate_compatible_resources(instance)
        rng = random.Random(0)

        self.assertIsNone(generate_random_reassign_move(schedule, 1, compatible_resources, rng))
        self.assertIsNone(generate_single_random_move(schedule, compatible_resources, rng, swap_probability=1.0))
        self.assertEqual(list(generate_full_neighborhood(schedule, compatible_resources)), [])

    def test_conflict_bias_picks_conflicted_events(self):
        rng = random.Random(0)
        picks = {choose_event(self.schedule, rng, conflict_bias=1.0) for _ in range(50)}
        self.assertEqual(picks, {1, 2}, "Only events 1 and 2 are in violation")

        picks = {choose_event(self.schedule, rng, conflict_bias=0.0) for _ in range(200)}
        self.assertEqual(picks, {1, 2, 3})

    def test_move_generation_is_deterministic(self):
        parsed_data = generate_test_data_parsed(30, 5, 3, conflict_density=0.2, seed=3)
        instance = parsed_data["instance"]
        compatible_resources = calculate_compatible_resources(instance)

        def sample(seed):
            rng = random.Random(seed)
            schedule = Schedule(instance)
            for event in instance.events:
                schedule.place(event.event_id, rng.choice(compatible_resources[event.event_id]))
            moves = generate_list_of_random_moves(schedule, compatible_resources, rng, 50,
                                                  conflict_bias=0.8, swap_probability=0.3)
            return [str(move) for move in moves]

        self.assertEqual(sample(42), sample(42))
        self.assertNotEqual(sample(42), sample(43))

    def test_full_neighborhood(self):
        moves = list(generate_full_neighborhood(self.schedule, self.compatible_resources))
        reassigns = [m for m in moves if not m.is_swap_move]
        swaps = [m for m in moves if m.is_swap_move]

        self.assertEqual(len(reassigns), 5 + 5 + 1)
        self.assertEqual([(m.event_id, m.other_event_id) for m in swaps], [(1, 3), (2, 3)])
        self.assertTrue(all(not m.is_swap_move for m in moves[:len(reassigns)]), "Reassigns come first")

        without_swaps = list(generate_full_neighborhood(self.schedule, self.compatible_resources, include_swaps=False))
        self.assertEqual(len(without_swaps), len(reassigns))


if __name__ == '__main__':
    unittest.main()
