import unittest
import random

from localsearch.base_model.attribute_enum import Attribute
from localsearch.base_model.compatibility_checks import calculate_compatible_resources
from localsearch.base_model.cost import Cost
from localsearch.base_model.event import Event
from localsearch.base_model.problem_instance import ConstraintWeights, ProblemInstance
from localsearch.base_model.resource import Resource
from localsearch.base_model.schedule import Schedule
from localsearch.construction.initial_assignment import random_assignment
from localsearch.local_search.move import Move, do_move, undo_move
from localsearch.local_search.move_generator import generate_single_random_move, generate_full_neighborhood
from localsearch.local_search.rules_engine import *
from localsearch.util.data_generator import generate_test_data, degree_plan_instance
from localsearch.util.parser import parse_instance


def grid(periods, locations, capacity=1, characteristics=frozenset()):
    return [Resource(period=p, location=loc, capacity=capacity, characteristics=characteristics)
            for p in periods for loc in locations]


class TestRulesEngine(unittest.TestCase):

    def setUp(self):
        # a random schedule with every soft weight switched on, for every test
        data = generate_test_data(n_events=40, n_periods=6, n_locations=3, conflict_density=0.15, seed=7)
        data["weights"] = {"preferred_period": 2, "load_balance": 1, "location_stability": 3}
        self.instances = {}
        for scope in ("resource", "period"):
            data["conflict_scope"] = scope
            self.instances[scope] = parse_instance(data)

        self.rule_functions = [
            (nr1_peer_conflict_delta, nr1_peer_conflict_full),
            (nr2_incompatible_resource_delta, nr2_incompatible_resource_full),
            (nr3_capacity_exceeded_delta, nr3_capacity_exceeded_full),
            (nr4_prerequisite_order_delta, nr4_prerequisite_order_full),
            (nr5_preferred_period_delta, nr5_preferred_period_full),
            (nr6_load_balance_delta, nr6_load_balance_full),
            (nr7_location_stability_delta, nr7_location_stability_full),
        ]

    def _random_schedule(self, instance, rng):
        compatible_resources = calculate_compatible_resources(instance)
        schedule = random_assignment(instance, rng, compatible_resources)
        schedule.cost = calculate_full_cost(schedule)
        return schedule, compatible_resources

    def test_delta_matches_full_difference_for_each_rule(self):
        for scope, instance in self.instances.items():
            rng = random.Random(1)
            schedule, compatible_resources = self._random_schedule(instance, rng)

            for _ in range(300):
                move = generate_single_random_move(schedule, compatible_resources, rng,
                                                   conflict_bias=0.5, swap_probability=0.3)
                if move is None:
                    continue
                for delta_function, full_function in self.rule_functions:
                    before = full_function(schedule)
                    delta = delta_function(schedule, move)
                    do_move(move, schedule)
                    after = full_function(schedule)
                    undo_move(move, schedule)
                    self.assertEqual(delta, after - before,
                                     f"{delta_function.__name__} disagrees with {full_function.__name__} "
                                     f"for {move} under {scope} scope")
                if rng.random() < 0.5:
                    do_move(move, schedule)

            schedule.check_consistency()

    def test_delta_cost_tracks_full_cost_along_a_walk(self):
        instance = self.instances["resource"]
        rng = random.Random(2)
        schedule, compatible_resources = self._random_schedule(instance, rng)

        for _ in range(500):
            move = generate_single_random_move(schedule, compatible_resources, rng, swap_probability=0.2)
            if move is None:
                continue
            delta = calculate_delta_cost(schedule, move)
            do_move(move, schedule)
            schedule.cost = schedule.cost + delta

        self.assertEqual(schedule.cost, calculate_full_cost(schedule), "Accumulated deltas drifted from the full cost")

    def test_maintained_violation_counts_match_a_fresh_scan(self):
        instances = list(self.instances.values()) + [degree_plan_instance()]
        for instance in instances:
            rng = random.Random(8)
            schedule, compatible_resources = self._random_schedule(instance, rng)

            for _ in range(300):
                # conflict_bias=1 reads the maintained counts on every move
                move = generate_single_random_move(schedule, compatible_resources, rng,
                                                   conflict_bias=1.0, swap_probability=0.3)
                if move is None:
                    continue
                delta = calculate_delta_cost(schedule, move)
                if delta <= Cost.zero() or rng.random() < 0.3:
                    do_move(move, schedule)
                self.assertEqual(get_conflicted_events(schedule), get_conflicted_events(schedule.copy()))

    def test_delta_leaves_schedule_untouched(self):
        instance = self.instances["period"]
        rng = random.Random(3)
        schedule, compatible_resources = self._random_schedule(instance, rng)
        before = dict(schedule.assignment())

        for move in list(generate_full_neighborhood(schedule, compatible_resources))[:200]:
            calculate_delta_cost(schedule, move)
            self.assertFalse(move.is_applied)

        self.assertEqual(dict(schedule.assignment()), before)
        schedule.check_consistency()

    def test_delta_rejects_applied_move(self):
        instance = self.instances["resource"]
        schedule, compatible_resources = self._random_schedule(instance, random.Random(4))
        move = next(generate_full_neighborhood(schedule, compatible_resources))
        do_move(move, schedule)
        with self.assertRaises(ValueError):
            calculate_delta_cost(schedule, move)
        with self.assertRaises(ValueError):
            calculate_delta_cost(schedule, None)


class TestIndividualRules(unittest.TestCase):

    def test_peer_conflict_depends_on_scope(self):
        resources = grid([1, 2], ["A", "B"])
        events = [Event(1, conflicts=frozenset({2})), Event(2)]
        by_resource = ProblemInstance(events, resources)
        by_period = ProblemInstance(events, resources, conflict_scope="period")

        for instance, expected in ((by_resource, 0), (by_period, 1)):
            schedule = Schedule(instance)
            schedule.place(1, instance.get_resource(1, "A"))
            schedule.place(2, instance.get_resource(1, "B"))
            self.assertEqual(nr1_peer_conflict_full(schedule), expected)

        schedule = Schedule(by_resource)
        schedule.place(1, by_resource.get_resource(2, "A"))
        schedule.place(2, by_resource.get_resource(2, "A"))
        self.assertEqual(nr1_peer_conflict_full(schedule), 1, "Same location and period collide in any scope")

    def test_long_events_overlap_across_periods(self):
        instance = ProblemInstance([Event(1, duration=3, conflicts=frozenset({2})), Event(2)],
                                   grid([1, 2, 3, 4], ["A"], capacity=2))
        schedule = Schedule(instance)
        schedule.place(1, instance.get_resource(1, "A"))
        schedule.place(2, instance.get_resource(3, "A"))
        self.assertEqual(nr1_peer_conflict_full(schedule), 1)
        schedule.reassign(2, instance.get_resource(4, "A"))
        self.assertEqual(nr1_peer_conflict_full(schedule), 0)

    def test_incompatible_resource(self):
        resources = grid([1], ["A"]) + grid([1], ["LAB"], characteristics=frozenset({Attribute.LAB}))
        instance = ProblemInstance([Event(1, requirements=frozenset({Attribute.LAB}))], resources)
        schedule = Schedule(instance)
        schedule.place(1, instance.get_resource(1, "A"))
        self.assertEqual(nr2_incompatible_resource_full(schedule), 1)

    def test_capacity_counts_missing_seats(self):
        instance = ProblemInstance([Event(1), Event(2), Event(3, size=2)], grid([1], ["A"], capacity=2))
        schedule = Schedule(instance)
        for event_id in (1, 2, 3):
            schedule.place(event_id, instance.get_resource(1, "A"))
        self.assertEqual(nr3_capacity_exceeded_full(schedule), 2)

    def test_prerequisite_order(self):
        instance = ProblemInstance([
            Event(1, duration=2),
            Event(2, prerequisites=frozenset({1})),
            Event(3, concurrent_prerequisites=frozenset({1})),
        ], grid([1, 2, 3, 4], ["A", "B", "C"], capacity=3))
        schedule = Schedule(instance)
        schedule.place(1, instance.get_resource(2, "A"))  # occupies periods 2 and 3
        schedule.place(2, instance.get_resource(3, "B"))
        schedule.place(3, instance.get_resource(2, "C"))
        self.assertEqual(nr4_prerequisite_order_full(schedule), 1, "Event 2 starts before its prerequisite ends")

        schedule.reassign(2, instance.get_resource(4, "B"))
        self.assertEqual(nr4_prerequisite_order_full(schedule), 0, "Concurrent prerequisites may share the start period")

        schedule.reassign(3, instance.get_resource(1, "C"))
        self.assertEqual(nr4_prerequisite_order_full(schedule), 1)

    def test_soft_rules(self):
        instance = ProblemInstance([
            Event(1, preferred_periods=frozenset({2})),
            Event(2),
            Event(3, prerequisites=frozenset({2})),
        ], grid([1, 2, 3], ["A", "B"], capacity=3), weights=ConstraintWeights(preferred_period=5, load_balance=1, location_stability=2))
        schedule = Schedule(instance)
        schedule.place(1, instance.get_resource(1, "A"))
        schedule.place(2, instance.get_resource(1, "B"))
        schedule.place(3, instance.get_resource(3, "A"))

        self.assertEqual(nr5_preferred_period_full(schedule), 1)
        self.assertEqual(nr6_load_balance_full(schedule), 2 * 2 + 1 * 1)
        self.assertEqual(nr7_location_stability_full(schedule), 1)
        self.assertEqual(calculate_full_cost(schedule), Cost(0, 5 * 1 + 1 * 5 + 2 * 1))

    def test_conflicted_events_and_violation_counts(self):
        instance = ProblemInstance([Event(1, conflicts=frozenset({2, 3})), Event(2), Event(3)],
                                   grid([1, 2], ["A"], capacity=3))
        schedule = Schedule(instance)
        for event_id in (1, 2, 3):
            schedule.place(event_id, instance.get_resource(1, "A"))
        self.assertEqual(count_event_violations(schedule, 1), 2)
        self.assertEqual(get_conflicted_events(schedule), {1: 2, 2: 1, 3: 1})

    def test_only_touched_events_are_recounted(self):
        instance = ProblemInstance([Event(1, conflicts=frozenset({2})), Event(2), Event(3), Event(4)],
                                   grid([1, 2], ["A", "B"], capacity=3))
        schedule = Schedule(instance)
        schedule.place(1, instance.get_resource(1, "A"))
        schedule.place(2, instance.get_resource(1, "A"))
        schedule.place(3, instance.get_resource(2, "B"))
        schedule.place(4, instance.get_resource(1, "B"))
        self.assertEqual(schedule.touched_events, set(), "Nothing is tracked before the first scan")

        self.assertEqual(get_conflicted_events(schedule), {1: 1, 2: 1})
        self.assertEqual(schedule.touched_events, set())

        do_move(Move(2, instance.get_resource(1, "A"), instance.get_resource(2, "A")), schedule)
        self.assertEqual(schedule.touched_events, {1, 2}, "Events 3 and 4 are unaffected by the move")
        self.assertEqual(get_conflicted_events(schedule), {})

        schedule.clear()
        self.assertIsNone(schedule.violation_counts)

    def test_hard_weight_dominates_soft_penalty(self):
        for instance in (degree_plan_instance(),
                         parse_instance(generate_test_data(30, 5, 2, seed=11))):
            hard_weight = calculate_hard_weight(instance)
            self.assertEqual(hard_weight, 10 ** (len(str(hard_weight)) - 1), "Hard weight is a power of 10")

            rng = random.Random(5)
            schedule = random_assignment(instance, rng)
            self.assertLess(calculate_full_cost(schedule).soft, hard_weight)


if __name__ == '__main__':
    unittest.main()
