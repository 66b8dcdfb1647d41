import unittest

from localsearch.errors import ConfigurationError
from localsearch.local_search.search_config import SearchConfig, StrategyKind


class TestSearchConfig(unittest.TestCase):

    def test_defaults_are_valid(self):
        config = SearchConfig()
        config.validate()
        self.assertIs(config.strategy, StrategyKind.HILL_CLIMBING)
        self.assertIsNone(config.time_budget_ms)

    def test_camel_case_and_snake_case_keys(self):
        config = SearchConfig.from_dict({
            "strategy": "simulated_annealing",
            "maxIterations": 500,
            "timeBudgetMs": 250,
            "initialTemperature": 40.0,
            "coolingRate": 0.9,
            "acceptPlateau": True,
            "swap_probability": 0.5,
        })
        self.assertIs(config.strategy, StrategyKind.SIMULATED_ANNEALING)
        self.assertEqual(config.max_iterations, 500)
        self.assertEqual(config.time_budget_ms, 250)
        self.assertEqual(config.initial_temperature, 40.0)
        self.assertEqual(config.cooling_rate, 0.9)
        self.assertTrue(config.accept_plateau)
        self.assertEqual(config.swap_probability, 0.5)

    def test_strategy_names(self):
        self.assertIs(StrategyKind.from_string("RandomRestart"), StrategyKind.RANDOM_RESTART)
        self.assertIs(StrategyKind.from_string("hill-climbing"), StrategyKind.HILL_CLIMBING)
        self.assertIs(StrategyKind.from_string("Simulated Annealing"), StrategyKind.SIMULATED_ANNEALING)
        with self.assertRaises(ConfigurationError):
            StrategyKind.from_string("TabuSearch")

    def test_to_dict_round_trip(self):
        config = SearchConfig(strategy="RandomRestart", restart_strategy="SimulatedAnnealing", seed=3, time_budget_ms=10)
        data = config.to_dict()
        self.assertEqual(data["strategy"], "RandomRestart")
        self.assertEqual(SearchConfig.from_dict(data), config)

    def test_invalid_options(self):
        invalid = [
            {"maxIterations": 0},
            {"maxIterations": -5},
            {"maxIterations": 1.5},
            {"timeBudgetMs": -1},
            {"coolingRate": 1.0},
            {"coolingRate": 0},
            {"initialTemperature": 0},
            {"minTemperature": -1.0},
            {"conflictBias": 1.5},
            {"swapProbability": -0.1},
            {"coolingRate": "fast"},
            {"initialTemperature": None},
            {"minTemperature": "0.1"},
            {"conflictBias": True},
            {"swapProbability": [0.2]},
            {"neighborhoodSampleSize": 0},
            {"progressEvery": 0},
            {"acceptPlateau": "yes"},
            {"initialAssignment": "optimal"},
            {"hardWeight": 0},
            {"restartStrategy": "RandomRestart"},
            {"strategy": "Genetic"},
            {"unknownOption": 1},
        ]
        for options in invalid:
            with self.assertRaises(ConfigurationError, msg=f"{options} should be rejected"):
                SearchConfig.from_dict(options)

    def test_configuration_error_is_a_value_error(self):
        with self.assertRaises(ValueError):
            SearchConfig.from_dict({"maxIterations": 0})


if __name__ == '__main__':
    unittest.main()
