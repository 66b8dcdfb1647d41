import argparse
import json
from pathlib import Path
import sys

from localsearch.util.parser import parse_input
from localsearch.util.schedule_visualizer import visualize
from localsearch.util.search_logger import SearchLogger
from localsearch.local_search.search_config import SearchConfig, StrategyKind
from localsearch.local_search.search_controller import solve


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Local search scheduler')

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--input', type=str, help='Path to input JSON file')

    group.add_argument('--test', nargs='+', type=int,
                       help='Generate test data with [n_events] [n_periods] [n_locations]')

    group.add_argument('--degree-plan', action='store_true',
                       help='Schedule the built-in ICS degree plan')

    parser.add_argument('--strategy', type=str,
                        choices=[str(kind) for kind in StrategyKind],
                        help='Search strategy (default: from the input file, else HillClimbing)')

    parser.add_argument('--max-iterations', type=int, help='Iteration budget')

    parser.add_argument('--time-budget-ms', type=int, help='Wall-clock budget in milliseconds')

    parser.add_argument('--seed', type=int, help='Seed for the random source')

    parser.add_argument('--output', type=str, default='output.json',
                        help='Path to output JSON file (default: output.json)')

    parser.add_argument('--log', type=str, help='Path to log file for the search output')

    parser.add_argument('--plot', type=str, help='Path to save a plot of the search progress')

    parser.add_argument('--visualize', action='store_true', help='Print the best schedule as a calendar')

    parser.add_argument('--quiet', action='store_true', help='Do not print search progress')

    return parser.parse_args(argv)


def apply_overrides(config: SearchConfig, args) -> SearchConfig:
    options = config.to_dict()
    if args.strategy is not None:
        options["strategy"] = args.strategy
    if args.max_iterations is not None:
        options["max_iterations"] = args.max_iterations
    if args.time_budget_ms is not None:
        options["time_budget_ms"] = args.time_budget_ms
    if args.seed is not None:
        options["seed"] = args.seed
    return SearchConfig.from_dict(options)


def main(argv=None):
    """Main entry point for the scheduler."""
    args = parse_arguments(argv)

    try:
        # Handle input data (use input file, generate test data or the degree plan)
        if args.input:
            input_path = Path(args.input)
            if not input_path.exists():
                print(f"Error: Input file {args.input} not found")
                return 1
            parsed_data = parse_input(input_path)
        elif args.test:
            if len(args.test) < 3:
                print("Error: Test mode requires 3 parameters: n_events n_periods n_locations")
                return 1

            from localsearch.util.data_generator import generate_test_data_parsed
            n_events, n_periods, n_locations = args.test[:3]
            parsed_data = generate_test_data_parsed(n_events, n_periods, n_locations)
        else:
            from localsearch.util.data_generator import degree_plan_instance
            parsed_data = {"instance": degree_plan_instance(), "config": SearchConfig()}

        instance = parsed_data["instance"]
        config = apply_overrides(parsed_data["config"], args)
        print(f"Loaded {instance}")

        with SearchLogger(log_file_path=args.log, verbose=not args.quiet) as logger:
            result = solve(instance, config, logger=logger)

        print(f"Termination: {result.termination_reason} after {result.iterations} iterations "
              f"({result.elapsed_seconds:.2f}s, {result.restarts} restarts)")
        print(f"Initial cost: {result.initial_cost}")
        print(f"Final cost: {result.best_cost}")

        if args.visualize:
            visualize(result.best_schedule)

        if args.plot:
            from localsearch.util.progress_plot import plot_progress
            plot_path = plot_progress(result.trace, args.plot, title=f"{result.strategy}")
            print(f"Progress plot written to {plot_path}")

        # Write schedule to output file
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(result.to_json(), f, indent=2)
        print(f"Schedule written to {args.output}")

        return 0

    except Exception as e:
        print(f"Error: {str(e)}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
